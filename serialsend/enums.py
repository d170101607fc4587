from enum import Enum

import serial


class Parity(str, Enum):
    NONE = serial.PARITY_NONE     # "N"
    EVEN = serial.PARITY_EVEN     # "E"
    ODD  = serial.PARITY_ODD      # "O"
