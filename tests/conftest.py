import pytest

from galjed import CHIP_PROFILES


#
# zero_regions:
#   All-zero fuse regions sized for a chip, as keyword arguments for make_jedec
#

def zero_regions(chip):

    profile = CHIP_PROFILES[chip]

    return {
        "gal_fuses": [False] * profile.fuses_size,
        "gal_xor": [False] * profile.xor_size,
        "gal_s1": [False] * profile.s1_size,
        "gal_sig": [False] * profile.sig_size,
        "gal_ac1": [False] * profile.ac1_size,
        "gal_pt": [False] * profile.pt_size,
        "gal_syn": False,
        "gal_ac0": False,
    }


@pytest.fixture
def regions():
    return zero_regions
