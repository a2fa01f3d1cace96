import pytest

from streamengine.sps import BitReader, SPSInfo, parse_sps


class _BitWriter:
    def __init__(self):
        self.bits = []

    def bits_(self, value, count):
        self.bits.extend((value >> (count - 1 - i)) & 1 for i in range(count))

    def ue(self, value):
        count = (value + 1).bit_length()
        self.bits.extend([0] * (count - 1))
        self.bits_(value + 1, count)

    def se(self, value):
        self.ue(2 * value - 1 if value > 0 else -2 * value)

    def to_bytes(self):
        bits = self.bits + [1]
        bits += [0] * (-len(bits) % 8)
        return bytes(int("".join(map(str, bits[i:i + 8])), 2) for i in range(0, len(bits), 8))


def _sps(profile=66, level=31, mb_w=80, mb_h=45, frame_mbs_only=1, crop=None,
         poc_type=0, scaling=None, chroma=1):
    w = _BitWriter()
    w.bits_(0x67, 8)
    w.bits_(profile, 8)
    w.bits_(0, 8)
    w.bits_(level, 8)
    w.ue(0)
    if profile in (100, 110, 122, 244, 44, 83, 86, 118):
        w.ue(chroma)
        if chroma == 3:
            w.bits_(0, 1)
        w.ue(0)
        w.ue(0)
        w.bits_(0, 1)
        if scaling is None:
            w.bits_(0, 1)
        else:
            w.bits_(1, 1)
            for i in range(8):
                deltas = scaling.get(i)
                if deltas is None:
                    w.bits_(0, 1)
                else:
                    w.bits_(1, 1)
                    for d in deltas:
                        w.se(d)
    w.ue(0)
    w.ue(poc_type)
    if poc_type == 0:
        w.ue(2)
    elif poc_type == 1:
        w.bits_(0, 1)
        w.se(-1)
        w.se(2)
        w.ue(2)
        w.se(3)
        w.se(-4)
    w.ue(1)
    w.bits_(0, 1)
    w.ue(mb_w - 1)
    w.ue(mb_h - 1)
    w.bits_(frame_mbs_only, 1)
    if not frame_mbs_only:
        w.bits_(1, 1)
    w.bits_(1, 1)
    if crop is None:
        w.bits_(0, 1)
    else:
        w.bits_(1, 1)
        for value in crop:
            w.ue(value)
    return w.to_bytes()


def test_read_bits_msb_first():
    reader = BitReader(b"\xa5")
    assert reader.read_bits(4) == 0xA
    assert reader.read_bit() == 0
    assert reader.read_bits(3) == 0b101


@pytest.mark.parametrize("data,expected", [(b"\x80", 0), (b"\x40", 1), (b"\x60", 2), (b"\x20", 3)])
def test_read_ue_codes(data, expected):
    assert BitReader(data).read_ue() == expected


@pytest.mark.parametrize("data,expected", [(b"\x80", 0), (b"\x40", 1), (b"\x60", -1), (b"\x20", 2)])
def test_read_se_codes(data, expected):
    assert BitReader(data).read_se() == expected


def test_read_past_end():
    reader = BitReader(b"\xff")
    reader.read_bits(6)
    with pytest.raises(EOFError):
        reader.read_bits(3)


def test_baseline_720p():
    info = parse_sps(_sps())
    assert (info.width, info.height) == (1280, 720)
    assert info.profile_idc == 66
    assert info.level_idc == 31
    assert (info.mb_width, info.mb_height) == (80, 45)


def test_high_profile_with_cropping_1080p():
    info = parse_sps(_sps(profile=100, level=40, mb_w=120, mb_h=68, crop=(0, 0, 0, 4)))
    assert (info.width, info.height) == (1920, 1080)
    assert info.crop_bottom == 4
    assert info.crop_left == 0


def test_interlaced_doubles_height():
    progressive = parse_sps(_sps(mb_h=18))
    interlaced = parse_sps(_sps(mb_h=18, frame_mbs_only=0))
    assert interlaced.height == 2 * progressive.height
    assert interlaced.width == progressive.width


def test_scaling_lists_consumed():
    scaling = {0: [0] * 16, 2: [-8], 6: [1] * 64}
    info = parse_sps(_sps(profile=100, scaling=scaling, chroma=3))
    assert (info.width, info.height) == (1280, 720)


def test_poc_type_one():
    info = parse_sps(_sps(poc_type=1, mb_w=40, mb_h=30))
    assert (info.mb_width, info.mb_height) == (40, 30)


def test_truncated_sps_raises():
    data = _sps()
    with pytest.raises(EOFError):
        parse_sps(data[:5])


def test_default_info_is_empty():
    assert SPSInfo() == SPSInfo(width=0, height=0)
    assert parse_sps(_sps()) != SPSInfo()