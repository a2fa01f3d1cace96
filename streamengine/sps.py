"""H.264 sequence parameter set parsing."""

from __future__ import annotations

from dataclasses import dataclass

_HIGH_PROFILES = {100, 110, 122, 244, 44, 83, 86, 118}


@dataclass
class SPSInfo:
    profile_idc: int = 0
    level_idc: int = 0
    mb_width: int = 0
    mb_height: int = 0
    crop_left: int = 0
    crop_right: int = 0
    crop_top: int = 0
    crop_bottom: int = 0
    width: int = 0
    height: int = 0


class BitReader:
    """MSB-first bit reader with Exp-Golomb decoding."""

    def __init__(self, data: bytes):
        self._data = bytes(data)
        self._pos = 0

    def read_bit(self) -> int:
        if self._pos >= len(self._data) * 8:
            raise EOFError("not enough data for bit read")
        byte = self._data[self._pos >> 3]
        bit = (byte >> (7 - (self._pos & 7))) & 1
        self._pos += 1
        return bit

    def read_bits(self, count: int) -> int:
        if self._pos + count > len(self._data) * 8:
            raise EOFError(f"not enough data to read {count} bits")
        value = 0
        for _ in range(count):
            value = (value << 1) | self.read_bit()
        return value

    def read_ue(self) -> int:
        """Unsigned Exp-Golomb code."""
        zeros = 0
        while self.read_bit() == 0:
            zeros += 1
        return (1 << zeros) - 1 + self.read_bits(zeros)

    def read_se(self) -> int:
        """Signed Exp-Golomb code."""
        code = self.read_ue()
        if code & 1:
            return (code + 1) >> 1
        return -(code >> 1)


def parse_sps(data: bytes) -> SPSInfo:
    """Parse an H.264 SPS NAL unit (header byte included) into picture geometry."""
    reader = BitReader(data)
    info = SPSInfo()
    reader.read_bits(8)
    info.profile_idc = reader.read_bits(8)
    reader.read_bits(8)
    info.level_idc = reader.read_bits(8)
    reader.read_ue()  # seq_parameter_set_id

    if info.profile_idc in _HIGH_PROFILES:
        chroma_format_idc = reader.read_ue()
        if chroma_format_idc == 3:
            reader.read_bit()
        reader.read_ue()  # bit_depth_luma_minus8
        reader.read_ue()  # bit_depth_chroma_minus8
        reader.read_bit()  # qpprime_y_zero_transform_bypass_flag
        if reader.read_bit():
            for index in range(8):
                if not reader.read_bit():
                    continue
                size = 16 if index < 6 else 64
                last_scale = next_scale = 8
                for _ in range(size):
                    if next_scale != 0:
                        next_scale = (last_scale + reader.read_se() + 256) % 256
                    if next_scale != 0:
                        last_scale = next_scale

    reader.read_ue()  # log2_max_frame_num_minus4
    pic_order_cnt_type = reader.read_ue()
    if pic_order_cnt_type == 0:
        reader.read_ue()
    elif pic_order_cnt_type == 1:
        reader.read_bit()
        reader.read_se()
        reader.read_se()
        for _ in range(reader.read_ue()):
            reader.read_se()

    reader.read_ue()  # max_num_ref_frames
    reader.read_bit()  # gaps_in_frame_num_value_allowed_flag

    info.mb_width = reader.read_ue() + 1
    info.mb_height = reader.read_ue() + 1

    frame_mbs_only_flag = reader.read_bit()
    if frame_mbs_only_flag == 0:
        reader.read_bit()
    reader.read_bit()  # direct_8x8_inference_flag

    if reader.read_bit():
        info.crop_left = reader.read_ue()
        info.crop_right = reader.read_ue()
        info.crop_top = reader.read_ue()
        info.crop_bottom = reader.read_ue()

    info.width = info.mb_width * 16 - info.crop_left * 2 - info.crop_right * 2
    info.height = (2 - frame_mbs_only_flag) * info.mb_height * 16 - info.crop_top * 2 - info.crop_bottom * 2
    return info