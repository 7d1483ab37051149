UTF8_BOM = b"\xef\xbb\xbf"
# flow account addresses are 8 bytes.
ADDRESS_HEX_LENGTH = 16


def strip_utf8_bom(data: bytes) -> bytes:
    # Cadence files saved by some editors start with a BOM.
    return data[len(UTF8_BOM):] if data.startswith(UTF8_BOM) else data


def hex_to_address(value: str) -> str:
    # "F8D6E0586B0A20C7" / "0x01" -> "0xf8d6e0586b0a20c7" / "0x0000000000000001"
    digits = value.strip().lower()
    if digits.startswith("0x"):
        digits = digits[2:]
    if not digits or len(digits) > ADDRESS_HEX_LENGTH:
        raise ValueError(f"invalid address length: {value!r}")
    try:
        int(digits, 16)
    except ValueError:
        raise ValueError(f"invalid hex address: {value!r}") from None
    return "0x" + digits.rjust(ADDRESS_HEX_LENGTH, "0")
