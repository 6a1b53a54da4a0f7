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
# galabi: Entry point for native (C) callers of the jedec writer
#
#     The C side of the assembler keeps its fuses in fixed size byte arrays (one byte per fuse, 0 or 1) and identifies the
#     chip with an integer tag. Everything handed over here is checked against those sizes and copied into owned lists
#     before the writer sees it.
#

import ctypes
import os
import pathlib

from galjed import ArrayLengthMismatch, Chip, Config, JedecError, UnsupportedChipVariant, get_chip_profile, make_jedec

#
# Chip tags used on the C side
#

GAL16V8 = 1
GAL20V8 = 2
GAL22V10 = 3
GAL20RA10 = 4

CHIP_TAGS = {
    GAL16V8: Chip.GAL16V8,
    GAL20V8: Chip.GAL20V8,
    GAL22V10: Chip.GAL22V10,
    GAL20RA10: Chip.GAL20RA10,
}

#
# Sizes of the fuse arrays on the C side, big enough for the largest chip
#

LOGIC_SIZE = 5808
XOR_SIZE = 10
S1_SIZE = 10
SIG_SIZE = 64
AC1_SIZE = 8
PT_SIZE = 64

#
# CConfig:
#   Config struct as laid out on the C side
#

class CConfig(ctypes.Structure):
    _fields_ = [
        ("gen_fuse", ctypes.c_int16),
        ("gen_chip", ctypes.c_int16),
        ("gen_pin", ctypes.c_int16),
        ("jedec_sec_bit", ctypes.c_int16),
        ("jedec_fuse_chk", ctypes.c_int16),
    ]

    def as_config(self):
        return Config(self.gen_fuse, self.gen_chip, self.gen_pin, self.jedec_sec_bit, self.jedec_fuse_chk)

#
# chip_from_tag:
#   Convert a C chip tag to a Chip, unknown tags raise UnsupportedChipVariant
#

def chip_from_tag(gal_type):

    try:
        return CHIP_TAGS[gal_type]
    except (KeyError, TypeError):
        raise UnsupportedChipVariant(gal_type) from None

#
# to_config:
#   Accept a CConfig, a pointer to one, or a Config
#

def to_config(config):

    if config is None:
        raise JedecError("Config is missing (null pointer)")

    if isinstance(config, Config):
        return config

    if isinstance(config, ctypes._Pointer):

        if not config:
            raise JedecError("Config is missing (null pointer)")

        config = config.contents

    return config.as_config()

#
# FuseBuffers:
#   Owned, length checked copy of the fuse regions for one chip taken from the C side's fixed size arrays
#

class FuseBuffers:

    def __init__(self, gal_type, gal, gal_xor, gal_s1, gal_sig, gal_ac1, gal_pt, gal_syn, gal_ac0):

        self.chip = chip_from_tag(gal_type) if not isinstance(gal_type, Chip) else gal_type
        profile = get_chip_profile(self.chip)

        #
        # Each native buffer must be exactly the size the C side declares, the chip's region is the leading part of it
        #

        self.fuses = self._take("fuses", gal, LOGIC_SIZE, profile.fuses_size)
        self.xor = self._take("xor", gal_xor, XOR_SIZE, profile.xor_size)
        self.s1 = self._take("s1", gal_s1, S1_SIZE, profile.s1_size)
        self.sig = self._take("sig", gal_sig, SIG_SIZE, profile.sig_size)
        self.ac1 = self._take("ac1", gal_ac1, AC1_SIZE, profile.ac1_size)
        self.pt = self._take("pt", gal_pt, PT_SIZE, profile.pt_size)
        self.syn = bool(gal_syn)
        self.ac0 = bool(gal_ac0)

    @staticmethod
    def _take(region, buffer, native_size, used):

        #
        # A pointer carries no length so only a null one can be told apart, the buffer must be passed as a sized array
        #

        if buffer is None or (isinstance(buffer, ctypes._Pointer) and not buffer):
            raise ArrayLengthMismatch(region, native_size, None)

        if isinstance(buffer, ctypes._Pointer):
            raise TypeError(f"Fuse region '{region}' must be a sized buffer of {native_size} bytes, not a pointer")

        data = memoryview(buffer).tobytes()

        if len(data) != native_size:
            raise ArrayLengthMismatch(region, native_size, len(data))

        return [byte != 0 for byte in data[:used]]

    def make_jedec(self, config):

        return make_jedec(self.chip, config, self.fuses, self.xor, self.s1, self.sig, self.ac1, self.pt, self.syn, self.ac0)

#
# call_from_c:
#   Build the jedec file from the C side's buffers and write it to file_name, errors from the writer and from writing the
#   file are raised to the caller, the jedec text is returned
#

def call_from_c(file_name, gal_type, config, gal, gal_xor, gal_s1, gal_sig, gal_ac1, gal_pt, gal_syn, gal_ac0):

    if file_name is None:
        raise JedecError("File name is missing (null pointer)")

    buffers = FuseBuffers(gal_type, gal, gal_xor, gal_s1, gal_sig, gal_ac1, gal_pt, gal_syn, gal_ac0)
    jedec = buffers.make_jedec(to_config(config))

    pathlib.Path(os.fsdecode(file_name)).write_bytes(jedec.encode("ascii"))

    return jedec
