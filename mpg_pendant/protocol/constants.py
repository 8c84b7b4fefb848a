"""Wire constants for XHC WHB04B-family pendants.

The display layout is fixed per hardware generation. This package targets
the 3 x 7-byte layout (21-byte payload); older dongles used 4 x 7 bytes.
"""

# USB identifiers shared by LHB04B / WHB04B-4 / WHB04B-6 dongles
PENDANT_VENDOR_ID = 0x10CE
PENDANT_PRODUCT_ID = 0xEB93

# Interface carrying input reports and feature reports
PENDANT_INTERFACE_NUMBER = 0

# Input report
INPUT_REPORT_HEADER = 0x04
INPUT_PACKET_LENGTH = 8

# Display feature reports
DISPLAY_REPORT_ID = 0x06
DISPLAY_HEADER = bytes([0xFE, 0xFD, 0xFE])
DISPLAY_REPORT_LENGTH = 8  # report ID + 7 payload bytes
DISPLAY_CHUNK_SIZE = DISPLAY_REPORT_LENGTH - 1
DISPLAY_REPORT_COUNT = 3
DISPLAY_PAYLOAD_LENGTH = 21

# Flag bits
FLAG_MODE_MASK = 0x03
FLAG_RESET = 0x40
FLAG_WORKPIECE = 0x80

# Fraction digits carried by a coordinate block
COORDINATE_FRACTION_SCALE = 10000
