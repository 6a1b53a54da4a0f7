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
# galjed: JEDEC fuse map writer for GAL devices
#
#     usage:
#
#         py galjed.py <options> <fuse map file name> [<fuse map file name> ...]
#
#     examples:
#
#         py galjed.py "C:\gal\counter.fuses.json"
#
#         py galjed.py --devicetype="gal22v10" --secbit --outdir="C:\gal\jed" "C:\gal\decoder.fuses.json"
#
#     options:
#
#         Option Name:                           Default Value:         Descrition:
#         =====================================  =====================  ==============================================================================================
#         --devicetype=<device>                  auto                   Specify a device type [auto, gal16v8, gal20v8, gal22v10, gal20ra10], auto uses the
#                                                                       "chip" entry of the fuse map file
#
#         --secbit                                                      Set the security bit (*G1) so the programmed device can't be read back
#
#         --fuse, --chip, --pin, --fusechk                              Reserved output options, accepted and carried in the config but not used by the writer
#
#         --outdir=<directory>                   (fuse map directory)   Directory the .jed files are written to
#
#     fuse map file:
#
#         json object with "chip", "fuses", "xor", "s1", "sig", "ac1", "pt" (strings of 0/1 or lists of 0/1) and "syn", "ac0" (0/1),
#         whole line comments starting with # are allowed
#

import argparse
import enum
import itertools
import json
import pathlib
import re
import sys
import tqdm

#
# Constants
#

ASSEMBLER_NAME = "GALasm 2.1"                                                                           # program name written into the jedec header, kept for compatibility with galasm output
STX = "\x02"                                                                                            # start of text marker for the jedec transmission
ETX = "\x03"                                                                                            # end of text marker for the jedec transmission

#
# Errors raised by the jedec writer
#

class JedecError(Exception):
    pass

class UnsupportedChipVariant(JedecError):

    def __init__(self, chip):
        self.chip = chip                                                                                # the chip value that couldn't be matched to a profile
        super().__init__(f"Unsupported chip variant: {chip!r}")

class ArrayLengthMismatch(JedecError):

    def __init__(self, region, expected, actual):
        self.region = region                                                                            # name of the fuse region (fuses, xor, s1, ...)
        self.expected = expected                                                                        # number of bits the chip profile expects for the region
        self.actual = actual                                                                            # number of bits supplied, None for a missing (null) buffer

        if actual is None:
            super().__init__(f"Fuse region '{region}' is missing, {expected} bits expected")
        else:
            super().__init__(f"Fuse region '{region}' has {actual} bits, {expected} bits expected")

class FuseMapError(Exception):
    pass

#
# Chip variants and their profiles
#

class Chip(enum.Enum):
    GAL16V8 = "GAL16V8"
    GAL20V8 = "GAL20V8"
    GAL22V10 = "GAL22V10"
    GAL20RA10 = "GAL20RA10"

class ChipProfile:

    def __init__(self, device_name, row_width, rows, xor_size, s1_size, sig_size, ac1_size, pt_size, fuse_count, has_ac1_pt_syn_ac0, interleave_xor_s1):
        self.device_name = device_name                                                                  # device name written in the jedec header
        self.row_width = row_width                                                                      # number of fuses in each row of the main matrix (one *L line)
        self.rows = rows                                                                                # number of rows in the main matrix
        self.xor_size = xor_size                                                                        # number of xor (output polarity) bits
        self.s1_size = s1_size                                                                          # number of s1 bits, 0 if the chip has none
        self.sig_size = sig_size                                                                        # number of signature bits
        self.ac1_size = ac1_size                                                                        # number of ac1 bits, 0 if the chip has none
        self.pt_size = pt_size                                                                          # number of product term disable bits, 0 if the chip has none
        self.fuse_count = fuse_count                                                                    # total fuse count for the *QF field
        self.has_ac1_pt_syn_ac0 = has_ac1_pt_syn_ac0                                                    # chip has ac1, pt, syn and ac0 fields after the signature
        self.interleave_xor_s1 = interleave_xor_s1                                                      # chip writes xor and s1 bits interleaved in one row

    @property
    def fuses_size(self):
        return self.row_width * self.rows

CHIP_PROFILES = {
    Chip.GAL16V8: ChipProfile("GAL16V8", 32, 64, 8, 0, 64, 8, 64, 2194, True, False),
    Chip.GAL20V8: ChipProfile("GAL20V8", 40, 64, 8, 0, 64, 8, 64, 2706, True, False),
    Chip.GAL22V10: ChipProfile("GAL22V10", 44, 132, 10, 10, 64, 0, 0, 5892, False, True),
    Chip.GAL20RA10: ChipProfile("GAL20RA10", 40, 80, 10, 0, 64, 0, 0, 3274, False, False),
}

#
# get_chip_profile:
#   Look up the profile for a chip, raising UnsupportedChipVariant for anything that isn't a known Chip
#

def get_chip_profile(gal_type):

    if not isinstance(gal_type, Chip) or gal_type not in CHIP_PROFILES:
        raise UnsupportedChipVariant(gal_type)

    return CHIP_PROFILES[gal_type]

#
# chip_from_name:
#   Match a device name (GAL16V8, gal22v10, ...) to a Chip
#

def chip_from_name(name):

    for chip in Chip:
        if str(name).strip().upper() == chip.value:
            return chip

    raise UnsupportedChipVariant(name)

#
# Writer configuration, mirrors the galasm config flags
#

class Config:

    def __init__(self, gen_fuse = 0, gen_chip = 0, gen_pin = 0, jedec_sec_bit = 0, jedec_fuse_chk = 0):
        self.gen_fuse = gen_fuse                                                                        # reserved: generate a fuse listing
        self.gen_chip = gen_chip                                                                        # reserved: generate a chip diagram
        self.gen_pin = gen_pin                                                                          # reserved: generate a pin listing
        self.jedec_sec_bit = jedec_sec_bit                                                              # set the security bit in the jedec file (*G1)
        self.jedec_fuse_chk = jedec_fuse_chk                                                            # reserved: restrict the fuse checksum

    def __repr__(self):
        return (f"Config(gen_fuse={self.gen_fuse}, gen_chip={self.gen_chip}, gen_pin={self.gen_pin}, "
                f"jedec_sec_bit={self.jedec_sec_bit}, jedec_fuse_chk={self.jedec_fuse_chk})")

#
# CheckSummer:
#   Running fuse checksum, bits are packed 8 to a byte (first bit is the lsb) and the bytes summed modulo 65536
#

class CheckSummer:

    def __init__(self):
        self.bit_num = 0                                                                                # position of the next bit in the partial byte (0 - 7)
        self.byte = 0                                                                                   # partial byte being built up
        self.sum = 0                                                                                    # 16 bit sum of all completed bytes

    def add(self, bit):

        if bit:
            self.byte |= 1 << self.bit_num

        self.bit_num += 1

        #
        # Once the byte is full add it to the sum and start a new byte
        #

        if self.bit_num == 8:
            self.sum = (self.sum + self.byte) & 0xffff
            self.byte = 0
            self.bit_num = 0

    def get(self):

        #
        # A trailing partial byte counts as-is, without padding
        #

        return (self.sum + self.byte) & 0xffff

#
# FuseBuilder:
#   Writes *L rows of fuses into the output buffer, keeping the fuse offset and the fuse checksum up to date
#

class FuseBuilder:

    def __init__(self, buf):
        self.buf = buf                                                                                  # list of strings the jedec file is built into
        self.checksum_summer = CheckSummer()                                                            # fuse checksum over every bit added or skipped
        self.idx = 0                                                                                    # fuse offset of the next row

    def add(self, bits):

        bits = list(bits)

        self.buf.append(f"*L{self.idx:04d} ")
        self.buf.append("".join("1" if bit else "0" for bit in bits))
        self.buf.append("\n")

        self._advance(bits)

    def skip(self, bits):

        #
        # Nothing is written, the offset and checksum move exactly as they would for add (the bits are all zero)
        #

        self._advance(bits)

    def _advance(self, bits):

        for bit in bits:
            self.checksum_summer.add(bit)
            self.idx += 1

    def checksum(self):

        self.buf.append(f"*C{self.checksum_summer.get():04x}\n")

#
# check_region:
#   Check a fuse region against the length the chip profile expects and return it as a list of bools
#

def check_region(region, bits, expected):

    #
    # Regions the chip doesn't have may be left out (None) or given empty
    #

    if bits is None:
        if expected == 0:
            return []
        raise ArrayLengthMismatch(region, expected, None)

    #
    # A string would read every '0' as a blown fuse, bit strings go through parse_bits first
    #

    if isinstance(bits, str):
        raise TypeError(f"Fuse region '{region}' must be a sequence of bits, not a string")

    bits = [bool(bit) for bit in bits]

    if len(bits) != expected:
        raise ArrayLengthMismatch(region, expected, len(bits))

    return bits

#
# make_jedec:
#   Build the complete jedec file for a chip from its fuse regions, compatible with the files galasm writes
#

def make_jedec(gal_type, config, gal_fuses, gal_xor, gal_s1, gal_sig, gal_ac1, gal_pt, gal_syn, gal_ac0):

    profile = get_chip_profile(gal_type)

    #
    # Validate every region before anything is written so an error never leaves partial output
    #

    gal_fuses = check_region("fuses", gal_fuses, profile.fuses_size)
    gal_xor = check_region("xor", gal_xor, profile.xor_size)
    gal_s1 = check_region("s1", gal_s1, profile.s1_size)
    gal_sig = check_region("sig", gal_sig, profile.sig_size)
    gal_ac1 = check_region("ac1", gal_ac1, profile.ac1_size)
    gal_pt = check_region("pt", gal_pt, profile.pt_size)

    buf = []

    #
    # Header
    #

    buf.append(f"{STX}\n")
    buf.append(f"Used Program:   {ASSEMBLER_NAME}\n")
    buf.append(f"GAL-Assembler:  {ASSEMBLER_NAME}\n")
    buf.append(f"Device:         {profile.device_name}\n\n")

    #
    # Default fuse state, security bit and number of fuses
    #

    buf.append("*F0\n")
    buf.append("*G1\n" if config.jedec_sec_bit != 0 else "*G0\n")
    buf.append(f"*QF{profile.fuse_count}\n")

    fuse_builder = FuseBuilder(buf)

    #
    # Main fuse matrix, one row per line, rows with no blown fuses are left to the *F0 default
    #

    for start in range(0, len(gal_fuses), profile.row_width):

        row = gal_fuses[start:start + profile.row_width]

        if any(row):
            fuse_builder.add(row)
        else:
            fuse_builder.skip(row)

    #
    # XOR bits, interleaved with the S1 bits on chips that have them (GAL22V10)
    #

    if profile.interleave_xor_s1:
        fuse_builder.add(itertools.chain.from_iterable(zip(gal_xor, gal_s1)))
    else:
        fuse_builder.add(gal_xor)

    fuse_builder.add(gal_sig)

    if profile.has_ac1_pt_syn_ac0:
        fuse_builder.add(gal_ac1)
        fuse_builder.add(gal_pt)
        fuse_builder.add([bool(gal_syn)])
        fuse_builder.add([bool(gal_ac0)])

    fuse_builder.checksum()

    buf.append("*\n")
    buf.append(ETX)

    #
    # Transmission checksum over everything from STX through ETX
    #

    jedec = "".join(buf)
    file_checksum = sum(jedec.encode("ascii")) & 0xffff

    return jedec + f"{file_checksum:04x}\n"

#
# get_command_arguments:
#   Get arguments from the command line
#

def get_command_arguments(argv = None):

    #
    # Create the parser object with information on the program
    #

    parser = argparse.ArgumentParser(prog = 'galjed', description = 'Write JEDEC files for GAL devices from fuse map files')

    parser.add_argument('--devicetype', dest = 'devicetype', default = 'auto', choices = ['auto'] + [chip.value.lower() for chip in Chip], help = 'Device type: auto, gal16v8, gal20v8, gal22v10, gal20ra10')
    parser.add_argument('--secbit', dest = 'secbit', default = False, help = 'Set the security bit', action = argparse.BooleanOptionalAction)
    parser.add_argument('--fuse', dest = 'fuse', default = False, help = 'Reserved: generate a fuse listing', action = argparse.BooleanOptionalAction)
    parser.add_argument('--chip', dest = 'chip', default = False, help = 'Reserved: generate a chip diagram', action = argparse.BooleanOptionalAction)
    parser.add_argument('--pin', dest = 'pin', default = False, help = 'Reserved: generate a pin listing', action = argparse.BooleanOptionalAction)
    parser.add_argument('--fusechk', dest = 'fusechk', default = False, help = 'Reserved: restrict the fuse checksum', action = argparse.BooleanOptionalAction)
    parser.add_argument('--outdir', dest = 'outdir', default = None, help = 'Directory to write the .jed files to')
    parser.add_argument('filenames', nargs = '+')

    return parser.parse_args(argv)

#
# build_config:
#   Build the writer config from the command arguments
#

def build_config(args):

    return Config(
        gen_fuse = int(args.fuse),
        gen_chip = int(args.chip),
        gen_pin = int(args.pin),
        jedec_sec_bit = int(args.secbit),
        jedec_fuse_chk = int(args.fusechk),
    )

#
# parse_bits:
#   Convert a fuse region from the fuse map file (string of 0/1 or list of 0/1) to a list of bools
#

def parse_bits(region, value):

    if isinstance(value, str):

        #
        # Whitespace is allowed anywhere in a bit string so long regions can be split into rows
        #

        value = "".join(value.split())

        if re.search(r'[^01]', value):
            raise FuseMapError(f"Fuse region '{region}' may only contain 0 and 1")

        return [bit == "1" for bit in value]

    if isinstance(value, list):

        if any(bit not in (0, 1) for bit in value):
            raise FuseMapError(f"Fuse region '{region}' may only contain 0 and 1")

        return [bool(bit) for bit in value]

    raise FuseMapError(f"Fuse region '{region}' must be a string or a list of bits")

#
# load_fuse_map:
#   Load a fuse map from a json file
#

def load_fuse_map(fusemap_filepath):

    print(f"Loading fuse map: {fusemap_filepath}")

    with open(fusemap_filepath, 'r', encoding = 'utf-8') as file:

        #
        # Remove single line comments where the line begins with whitespace then a # character (illegal in json so we remove them first)
        #

        comment_pattern = r'^\s*[#]'

        try:
            fusemap = json.loads(''.join(line for line in file if not re.match(comment_pattern, line)))
        except UnicodeDecodeError as e:
            raise FuseMapError(f"Fuse map '{fusemap_filepath}' is not valid utf-8: {e}")
        except json.JSONDecodeError as e:
            raise FuseMapError(f"Fuse map '{fusemap_filepath}' is not valid json: {e}")

    if not isinstance(fusemap, dict):
        raise FuseMapError(f"Fuse map '{fusemap_filepath}' must be a json object")

    #
    # Convert every region present in the file, missing regions stay None and missing scalars are 0
    #

    regions = {}

    for region in ("fuses", "xor", "s1", "sig", "ac1", "pt"):
        regions[region] = parse_bits(region, fusemap[region]) if region in fusemap else None

    for scalar in ("syn", "ac0"):

        value = fusemap.get(scalar, 0)

        if value not in (0, 1):
            raise FuseMapError(f"Fuse bit '{scalar}' must be 0 or 1")

        regions[scalar] = bool(value)

    regions["chip"] = fusemap.get("chip")

    return regions

#
# select_chip:
#   Select the chip from the command arguments or from the fuse map when the device type is 'auto'
#

def select_chip(devicetype, fusemap):

    if devicetype != "auto":
        chip = chip_from_name(devicetype)

    elif fusemap["chip"] is None:
        raise FuseMapError("Device detection failed, no 'chip' in the fuse map and no --devicetype given")

    else:
        chip = chip_from_name(fusemap["chip"])

    print(f"Device detected: {chip.value}")

    return chip

#
# write_jedec_file:
#   Write the jedec text to a file, bytes are written as-is so the checksummed content is exactly what lands on disk
#

def write_jedec_file(jedec_filepath, jedec):

    print(f"Writing JEDEC file: {jedec_filepath}")

    pathlib.Path(jedec_filepath).write_bytes(jedec.encode("ascii"))

#
# get_jedec_filepath:
#   Output goes next to the fuse map unless an output directory was given, "counter.fuses.json" becomes "counter.jed"
#

def get_jedec_filepath(fusemap_filepath, outdir = None):

    fusemap_filepath = pathlib.Path(fusemap_filepath)
    outdir = pathlib.Path(outdir) if outdir else fusemap_filepath.parent

    #
    # Names starting with a dot (".hidden.json") keep their leading part
    #

    stem = fusemap_filepath.name.split(".")[0] or fusemap_filepath.stem

    return outdir / (stem + ".jed")

#
# convert_fuse_map:
#   Load one fuse map file, build the jedec file for it and write it out, returns the path of the written file
#

def convert_fuse_map(fusemap_filepath, args):

    fusemap_filepath = pathlib.Path(fusemap_filepath)

    fusemap = load_fuse_map(fusemap_filepath)
    chip = select_chip(args.devicetype, fusemap)

    jedec = make_jedec(
        chip,
        build_config(args),
        fusemap["fuses"],
        fusemap["xor"],
        fusemap["s1"],
        fusemap["sig"],
        fusemap["ac1"],
        fusemap["pt"],
        fusemap["syn"],
        fusemap["ac0"],
    )

    jedec_filepath = get_jedec_filepath(fusemap_filepath, args.outdir)

    write_jedec_file(jedec_filepath, jedec)

    return jedec_filepath

#
# main:
#   Convert every fuse map given on the command line, a failing file is reported and the rest are still converted
#

def main(argv = None):

    args = get_command_arguments(argv)

    failures = 0
    written = set()

    for filename in tqdm.tqdm(args.filenames):

        try:

            #
            # Two fuse maps that map to the same .jed in one run ("a.json", "a.fuses.json") would overwrite each other
            #

            jedec_filepath = get_jedec_filepath(filename, args.outdir).resolve()

            if jedec_filepath in written:
                raise FuseMapError(f"JEDEC file '{jedec_filepath}' was already written in this run")

            convert_fuse_map(filename, args)
            written.add(jedec_filepath)

        except (JedecError, FuseMapError, OSError) as e:
            print(f"Error converting '{filename}': {e}")
            failures += 1

    return 1 if failures else 0

if __name__ == "__main__":
    sys.exit(main())
