"""Minimal ABI encode/decode for the calls and events the projector uses."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from Crypto.Hash import keccak

SIGNATURE_RE = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)\((.*)\)$")


class AbiDecodeError(ValueError):
    """Return data or log payload does not match the expected types."""


def keccak256(data: bytes) -> bytes:
    digest = keccak.new(digest_bits=256)
    digest.update(data)
    return digest.digest()


def _split_params(raw: str) -> list[str]:
    raw = raw.strip()
    return [p.strip() for p in raw.split(",")] if raw else []


def canonical_signature(signature: str) -> tuple[str, list[str]]:
    """``"f(uint256 a, address b)"`` -> ``("f", ["uint256", "address"])``."""
    match = SIGNATURE_RE.fullmatch(signature.strip())
    if not match:
        raise ValueError(f"invalid signature: {signature}")
    name, params = match.group(1), _split_params(match.group(2))
    types = [p.split()[0] for p in params]
    return name, types


def function_selector(signature: str) -> str:
    name, types = canonical_signature(signature)
    return "0x" + keccak256(f"{name}({','.join(types)})".encode()).hex()[:8]


def event_topic0(signature: str) -> str:
    name, types = canonical_signature(signature)
    return "0x" + keccak256(f"{name}({','.join(types)})".encode()).hex()


# ── Encoding ───────────────────────────────────────────────


def _is_dynamic(abi_type: str) -> bool:
    return abi_type in ("string", "bytes") or abi_type.endswith("[]")


def _encode_static(abi_type: str, value: Any) -> bytes:
    if abi_type == "address":
        return int(str(value), 16).to_bytes(32, "big")
    if abi_type == "bool":
        return int(bool(value)).to_bytes(32, "big")
    if abi_type.startswith("uint"):
        number = int(value)
        if number < 0:
            raise ValueError("unsigned integer cannot be negative")
        return number.to_bytes(32, "big")
    if abi_type.startswith("bytes"):
        raw = bytes.fromhex(str(value).removeprefix("0x")) if isinstance(value, str) else bytes(value)
        return raw.ljust(32, b"\x00")
    raise ValueError(f"unsupported ABI type: {abi_type}")


def _encode_dynamic(abi_type: str, value: Any) -> bytes:
    if abi_type.endswith("[]"):
        inner = abi_type[:-2]
        return len(value).to_bytes(32, "big") + b"".join(_encode_static(inner, v) for v in value)
    raw = value.encode("utf-8") if abi_type == "string" else bytes(value)
    padding = (32 - len(raw) % 32) % 32
    return len(raw).to_bytes(32, "big") + raw + b"\x00" * padding


def encode_abi(types: list[str], values: list[Any]) -> bytes:
    if len(types) != len(values):
        raise ValueError("argument count mismatch")
    head_size = 32 * len(types)
    heads: list[bytes] = []
    tails: list[bytes] = []
    for abi_type, value in zip(types, values):
        if _is_dynamic(abi_type):
            heads.append((head_size + sum(len(t) for t in tails)).to_bytes(32, "big"))
            tails.append(_encode_dynamic(abi_type, value))
        else:
            heads.append(_encode_static(abi_type, value))
    return b"".join(heads + tails)


def encode_call(signature: str, *args: Any) -> str:
    """Calldata hex for ``signature`` applied to ``args``."""
    _, types = canonical_signature(signature)
    return function_selector(signature) + encode_abi(types, list(args)).hex()


# ── Decoding ───────────────────────────────────────────────


def _hex_bytes(data_hex: str) -> bytes:
    try:
        return bytes.fromhex((data_hex or "").removeprefix("0x"))
    except ValueError as exc:
        raise AbiDecodeError(f"invalid hex data: {exc}") from exc


def _decode_static(abi_type: str, word: bytes) -> Any:
    if abi_type == "address":
        return "0x" + word[-20:].hex()
    if abi_type == "bool":
        return int.from_bytes(word, "big") != 0
    if abi_type.startswith("uint"):
        return int.from_bytes(word, "big")
    if abi_type.startswith("int"):
        return int.from_bytes(word, "big", signed=True)
    if abi_type.startswith("bytes"):
        size = int(abi_type[5:] or 32)
        return word[:size]
    raise AbiDecodeError(f"unsupported ABI type: {abi_type}")


def _word(data: bytes, offset: int) -> bytes:
    if offset < 0 or offset + 32 > len(data):
        raise AbiDecodeError("offset out of bounds")
    return data[offset:offset + 32]


def _decode_dynamic(abi_type: str, data: bytes, offset: int) -> Any:
    length = int.from_bytes(_word(data, offset), "big")
    start = offset + 32
    if abi_type.endswith("[]"):
        inner = abi_type[:-2]
        return [_decode_static(inner, _word(data, start + 32 * i)) for i in range(length)]
    if start + length > len(data):
        raise AbiDecodeError("dynamic data out of bounds")
    raw = data[start:start + length]
    if abi_type == "string":
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise AbiDecodeError(f"invalid utf-8 string: {exc}") from exc
    return raw


def decode_abi(types: list[str], data_hex: str) -> list[Any]:
    data = _hex_bytes(data_hex)
    if len(data) < 32 * len(types):
        raise AbiDecodeError("data shorter than ABI head")
    out = []
    for index, abi_type in enumerate(types):
        head = _word(data, index * 32)
        if _is_dynamic(abi_type):
            out.append(_decode_dynamic(abi_type, data, int.from_bytes(head, "big")))
        else:
            out.append(_decode_static(abi_type, head))
    return out


def decode_text(data_hex: str) -> str:
    """Decode a ``string`` return value, or a ``bytes32`` one from older tokens."""
    data = _hex_bytes(data_hex)
    if len(data) == 32:
        return data.rstrip(b"\x00").decode("utf-8", errors="replace")
    return decode_abi(["string"], data_hex)[0]


@dataclass(frozen=True)
class EventDeclaration:
    """Parsed ``Name(type name, type indexed name, ...)`` event declaration."""

    name: str
    types: tuple[str, ...]
    names: tuple[str, ...]
    indexed: tuple[bool, ...]

    @classmethod
    def parse(cls, declaration: str) -> EventDeclaration:
        match = SIGNATURE_RE.fullmatch(declaration.strip())
        if not match:
            raise ValueError(f"invalid event declaration: {declaration}")
        types, names, indexed = [], [], []
        for position, param in enumerate(_split_params(match.group(2))):
            parts = param.split()
            types.append(parts[0])
            indexed.append("indexed" in parts[1:])
            rest = [p for p in parts[1:] if p != "indexed"]
            names.append(rest[0] if rest else f"arg{position}")
        return cls(match.group(1), tuple(types), tuple(names), tuple(indexed))

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.types)})"

    @property
    def topic0(self) -> str:
        return event_topic0(self.signature)

    def decode(self, topics: list[str], data_hex: str) -> dict[str, Any]:
        if not topics or topics[0].lower() != self.topic0:
            raise AbiDecodeError(f"topic0 does not match {self.signature}")
        plain_types = [t for t, i in zip(self.types, self.indexed) if not i]
        plain_values = iter(decode_abi(plain_types, data_hex))
        indexed_topics = iter(topics[1:])
        values: dict[str, Any] = {}
        for abi_type, name, is_indexed in zip(self.types, self.names, self.indexed):
            if not is_indexed:
                values[name] = next(plain_values)
                continue
            try:
                topic = _hex_bytes(next(indexed_topics)).rjust(32, b"\x00")
            except StopIteration:
                raise AbiDecodeError(f"missing indexed topic for {name}") from None
            # Dynamic indexed values are only available as their hash
            values[name] = topic if _is_dynamic(abi_type) else _decode_static(abi_type, topic)
        return values
