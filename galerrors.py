#
# Copyright (c) 2025 Clint Kolodziej
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.
#

#
# galerrors: Assembler error codes
#
#     Errors found while assembling a GAL source file are reported as an error code plus the source line number, printed the
#     same way galasm prints them:
#
#         Error in line 12: unknown pinname
#

import enum

class ErrorCode(enum.Enum):
    ARSP_AS_PIN_NAME = enum.auto()
    ARSP_SUFFIX = enum.auto()
    BAD_ANALYSIS = enum.auto()
    BAD_ARSP = enum.auto()
    BAD_CHAR = enum.auto()
    BAD_EOF = enum.auto()
    BAD_EOL = enum.auto()
    BAD_GAL_TYPE = enum.auto()
    BAD_GND = enum.auto()
    BAD_GND_LOCATION = enum.auto()
    BAD_NC = enum.auto()
    BAD_PIN = enum.auto()
    BAD_PIN_COUNT = enum.auto()
    BAD_POWER = enum.auto()
    BAD_SUFFIX = enum.auto()
    BAD_TOKEN = enum.auto()
    BAD_VCC = enum.auto()
    BAD_VCC_LOCATION = enum.auto()
    DISALLOWED_APRST = enum.auto()
    DISALLOWED_ARST = enum.auto()
    DISALLOWED_CLK = enum.auto()
    INVALID_CONTROL = enum.auto()
    INVERTED_ARSP = enum.auto()
    INVERTED_CONTROL = enum.auto()
    INVERTED_POWER = enum.auto()
    MORE_THAN_ONE_PRODUCT = enum.auto()
    NO_CLK = enum.auto()
    NO_EQUALS = enum.auto()
    NO_PIN_NAME = enum.auto()
    NOT_AN_INPUT_1 = enum.auto()
    NOT_AN_INPUT_1_11 = enum.auto()
    NOT_AN_INPUT_1_13 = enum.auto()
    NOT_AN_INPUT_12_19 = enum.auto()
    NOT_AN_INPUT_13 = enum.auto()
    NOT_AN_INPUT_15_22 = enum.auto()
    NOT_AN_OUTPUT = enum.auto()
    REPEATED_APRST = enum.auto()
    REPEATED_ARSP = enum.auto()
    REPEATED_ARST = enum.auto()
    REPEATED_CLK = enum.auto()
    REPEATED_OUTPUT = enum.auto()
    REPEATED_PIN_NAME = enum.auto()
    REPEATED_TRISTATE = enum.auto()
    SOLO_APRST = enum.auto()
    SOLO_ARST = enum.auto()
    SOLO_CLK = enum.auto()
    SOLO_ENABLE = enum.auto()
    TOO_MANY_PRODUCTS = enum.auto()
    TRISTATE_REG = enum.auto()
    UNKNOWN_PIN = enum.auto()
    UNMATCHED_TRISTATE = enum.auto()

#
# Messages for each error code, worded as galasm words them
#

ERROR_STRINGS = {
    ErrorCode.ARSP_AS_PIN_NAME: "GAL22V10: AR and SP is not allowed as pinname",
    ErrorCode.ARSP_SUFFIX: "AR, SP: no suffix allowed",
    ErrorCode.BAD_ANALYSIS: "internal error: analyse_mode should never let you use this pin as an input",
    ErrorCode.BAD_ARSP: "use of AR and SP is not allowed in equations",
    ErrorCode.BAD_NC: "NC (Not Connected) is not allowed in logic equations",
    ErrorCode.BAD_CHAR: "bad character in input",
    ErrorCode.BAD_EOF: "unexpected end of file",
    ErrorCode.BAD_EOL: "unexpected end of line",
    ErrorCode.BAD_GAL_TYPE: "Line  1: type of GAL expected",
    ErrorCode.BAD_PIN: "illegal character in pin declaration",
    ErrorCode.BAD_PIN_COUNT: "wrong number of pins",
    ErrorCode.BAD_POWER: "use of VCC and GND is not allowed in equations",
    ErrorCode.BAD_SUFFIX: "unknown suffix found",
    ErrorCode.BAD_TOKEN: "unexpected token",
    ErrorCode.INVERTED_ARSP: "negation of AR and SP is not allowed",
    ErrorCode.INVALID_CONTROL: "use of .CLK, .ARST, .APRST only allowed for registered outputs",
    ErrorCode.INVERTED_CONTROL: ".E, .CLK, .ARST and .APRST is not allowed to be negated",
    ErrorCode.INVERTED_POWER: "use GND, VCC instead of /VCC, /GND",
    ErrorCode.MORE_THAN_ONE_PRODUCT: "only one product term allowed (no OR)",
    ErrorCode.NOT_AN_INPUT_1: "GAL20RA10: pin 1 can't be used in equations",
    ErrorCode.NOT_AN_INPUT_1_11: "mode 3: pins 1,11 are reserved for 'Clock' and '/OE'",
    ErrorCode.NOT_AN_INPUT_1_13: "mode 3: pins 1,13 are reserved for 'Clock' and '/OE'",
    ErrorCode.NOT_AN_INPUT_12_19: "mode 2: pins 12, 19 can't be used as input",
    ErrorCode.NOT_AN_INPUT_13: "GAL20RA10: pin 13 can't be used in equations",
    ErrorCode.NOT_AN_INPUT_15_22: "mode 2: pins 15, 22 can't be used as input",
    ErrorCode.NOT_AN_OUTPUT: "this pin can't be used as output",
    ErrorCode.NO_CLK: "missing clock definition (.CLK) of registered output",
    ErrorCode.NO_PIN_NAME: "pinname expected after '/'",
    ErrorCode.NO_EQUALS: "'=' expected",
    ErrorCode.REPEATED_APRST: "several .APRST definitions for the same output found",
    ErrorCode.REPEATED_ARST: "several .ARST definitions for the same output found",
    ErrorCode.REPEATED_ARSP: "AR or SP is defined twice",
    ErrorCode.REPEATED_CLK: "several .CLK definitions for the same output found",
    ErrorCode.REPEATED_OUTPUT: "same pin is defined multible as output",
    ErrorCode.REPEATED_PIN_NAME: "pinname defined twice",
    ErrorCode.REPEATED_TRISTATE: "tristate control is defined twice",
    ErrorCode.SOLO_APRST: "if using .APRST the output must be defined",
    ErrorCode.SOLO_ARST: "if using .ARST, the output must be defined",
    ErrorCode.SOLO_CLK: "if using .CLK, the output must be defined",
    ErrorCode.SOLO_ENABLE: "if using .E, the output must be defined",
    ErrorCode.TOO_MANY_PRODUCTS: "too many product terms",
    ErrorCode.TRISTATE_REG: "GAL16V8/20V8: tri. control for reg. output is not allowed",
    ErrorCode.UNKNOWN_PIN: "unknown pinname",
    ErrorCode.UNMATCHED_TRISTATE: "tristate control without previous '.T'",
    ErrorCode.BAD_VCC: "pin declaration: expected VCC at VCC pin",
    ErrorCode.BAD_VCC_LOCATION: "illegal VCC/GND assignment",
    ErrorCode.BAD_GND: "pin declaration: expected GND at GND pin",
    ErrorCode.BAD_GND_LOCATION: "illegal VCC/GND assignment",
    ErrorCode.DISALLOWED_CLK: ".CLK is not allowed when this type of GAL is used",
    ErrorCode.DISALLOWED_ARST: ".ARST is not allowed when this type of GAL is used",
    ErrorCode.DISALLOWED_APRST: ".APRST is not allowed when this type of GAL is used",
}

class AssemblerError(Exception):

    def __init__(self, code, line):
        self.code = code                                                                                # ErrorCode for what went wrong
        self.line = line                                                                                # source line number the error was found on
        super().__init__(format_error(self))

#
# error_string:
#   Get the message for an error code
#

def error_string(code):

    return ERROR_STRINGS[code]

#
# at_line:
#   Attach a source line number to an error code, the result is ready to raise
#

def at_line(line, code):

    return AssemblerError(code, line)

def format_error(err):

    return f"Error in line {err.line}: {error_string(err.code)}"

def print_error(err):

    print(format_error(err))
