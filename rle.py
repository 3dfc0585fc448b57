import os
import sys
from enum import Enum
from itertools import zip_longest
from typing import (
    Iterable,
    Iterator,
    List,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
)
from typing_extensions import Final

T = TypeVar("T")
byte = int

DEBUG = bool(int(os.environ.get("DEBUG", False)))

PROG: Final[str] = "rle"
USAGE: Final[str] = "usage: [options] <filepath>\noptions:\n    d - decode"

# A run never grows past one count byte.
MAX_RUN: Final[int] = 255
# Each run is written as its value byte followed by its count byte.
PAIR_ORDER: Final[Tuple[str, str]] = ("value", "count")
PAIR_SIZE: Final[int] = len(PAIR_ORDER)


def debug(*args, **kwargs):
    if DEBUG:
        print(*args, **kwargs, file=sys.stderr)


def chunks(xs: Iterable[T], n: int, default: T) -> Iterator[Tuple[T, ...]]:
    return zip_longest(*([iter(xs)] * n), fillvalue=default)


class RLEError(Exception):
    pass


class ArgumentError(RLEError):
    pass


class MalformedInputError(RLEError, ValueError):
    pass


class Compressor:
    def encode(self, data: bytes) -> bytes:
        raise NotImplementedError

    def decode(self, data: bytes) -> bytes:
        raise NotImplementedError

    def test(self) -> None:
        tests = [
            b"",
            b"abc",
            b"aaabccd",
            b"aab0bb0012",
            "λaé".encode(),
            b"a" * 1000,
            b"ababcaab",
            bytes(range(256)),
        ]
        for test in tests:
            roundtrip = self.decode(self.encode(test))
            assert roundtrip == test, f"{roundtrip!r} != {test!r}"


class Run:
    def __init__(self, char: byte, length: int):
        self.char = char
        self.length = length

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Run):
            return NotImplemented
        return (self.char, self.length) == (other.char, other.length)

    def __repr__(self) -> str:
        return f"Run({self.char!r}, {self.length!r})"

    def encode(self) -> bytes:
        assert 0 < self.length <= MAX_RUN
        fields = {"value": self.char, "count": self.length}
        return bytes(fields[name] for name in PAIR_ORDER)

    @classmethod
    def decode(cls, pair: Sequence[Optional[byte]], offset: int = 0) -> "Run":
        """Read one pair; `offset` is where it starts in the stream."""
        if len(pair) != PAIR_SIZE or any(b is None for b in pair):
            raise MalformedInputError(
                f"truncated pair at offset {offset}: "
                f"expected {PAIR_SIZE} bytes ({', '.join(PAIR_ORDER)})"
            )
        fields = dict(zip(PAIR_ORDER, pair))
        return cls(fields["value"], fields["count"])

    def pack(self) -> bytes:
        return bytes((self.char,) * self.length)


class RLE(Compressor):
    def encode(self, data: bytes) -> bytes:
        runs = self.runs(data)
        debug(f"Encoding {len(data)} bytes into {len(runs)} pairs")
        return b"".join(r.encode() for r in runs)

    def decode(self, data: bytes) -> bytes:
        if len(data) % PAIR_SIZE != 0:
            debug(f"Odd-length input: {len(data)} bytes")
        out = bytearray()
        for i, pair in enumerate(chunks(data, PAIR_SIZE, None)):
            out += Run.decode(pair, offset=i * PAIR_SIZE).pack()
        debug(f"Decoded {len(data) // PAIR_SIZE} pairs into {len(out)} bytes")
        return bytes(out)

    @staticmethod
    def runs(data: bytes) -> Sequence[Run]:
        if data == b"":
            return []

        runs = [Run(data[0], 0)]
        for char in data:
            prev = runs[-1]
            if prev.char == char and prev.length < MAX_RUN:
                prev.length += 1
            else:
                runs.append(Run(char, 1))

        return runs


class Mode(Enum):
    ENCODE = "rle"
    DECODE = "dat"

    @property
    def extension(self) -> str:
        return self.value

    def transform(self, cmp: Compressor, data: bytes) -> bytes:
        if self is Mode.ENCODE:
            return cmp.encode(data)
        return cmp.decode(data)


class Config:
    decode_flag: Final[str] = "d"

    def __init__(self, mode: Mode, path: str) -> None:
        self.mode = mode
        self.path = path

    @property
    def output_path(self) -> str:
        # Appended, not substituted: a.txt -> a.txt.rle -> a.txt.rle.dat
        return f"{self.path}.{self.mode.extension}"

    @classmethod
    def from_args(cls, args: Sequence[str]) -> "Config":
        if len(args) == 0:
            raise ArgumentError("no argument was specified")
        if len(args) > 2:
            raise ArgumentError("too many arguments")

        if args[0] == cls.decode_flag:
            if len(args) < 2:
                raise ArgumentError("no filepath was specified")
            return cls(Mode.DECODE, args[1])
        if len(args) == 2:
            raise ArgumentError(f"unrecognized option '{args[0]}'")

        return cls(Mode.ENCODE, args[0])


def run(config: Config, cmp: Optional[Compressor] = None) -> str:
    cmp = RLE() if cmp is None else cmp
    debug(f"Mode: {config.mode.name.lower()}, input: {config.path}")

    with open(config.path, "rb") as f:
        data = f.read()
    debug(f"Read {len(data)} bytes")

    # Transform before opening the output so a bad input leaves no file.
    result = config.mode.transform(cmp, data)

    out = config.output_path
    with open(out, "wb") as f:
        f.write(result)
    debug(f"Wrote {len(result)} bytes to {out}")
    return out


def bail(msg: str) -> int:
    print(f"{PROG}: error: {msg}", file=sys.stderr)
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    try:
        config = Config.from_args(args)
    except ArgumentError as e:
        return bail(f"invalid arguments: {e}\n{USAGE}")

    try:
        run(config)
    except MalformedInputError as e:
        return bail(f"malformed input: {e}")
    except OSError as e:
        return bail(str(e))
    return 0


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
