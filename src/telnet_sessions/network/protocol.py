"""Telnet IAC sequence parsing and option refusal for telnet sessions.

The codec is stateless: every call sees one chunk of bytes and nothing is
carried over to the next call. A negotiation or subnegotiation that is cut
off at the end of a chunk is dropped rather than reassembled.
"""

from dataclasses import dataclass
from typing import Final

import structlog
from telnetlib3 import telopt

from telnet_sessions.errors import UnsupportedCommandError

logger = structlog.get_logger(__name__)

# RFC 854 command bytes
IAC: Final[int] = ord(telopt.IAC)  # 255
DONT: Final[int] = ord(telopt.DONT)  # 254
DO: Final[int] = ord(telopt.DO)  # 253
WONT: Final[int] = ord(telopt.WONT)  # 252
WILL: Final[int] = ord(telopt.WILL)  # 251
SB: Final[int] = ord(telopt.SB)  # 250
SE: Final[int] = ord(telopt.SE)  # 240

NEGOTIATION_COMMANDS: Final[frozenset[int]] = frozenset({DO, DONT, WILL, WONT})

# We never enable an option: refuse requests, acknowledge refusals.
REFUSAL_POLICY: Final[dict[int, int]] = {
    DO: WONT,
    DONT: WONT,
    WILL: DONT,
    WONT: DONT,
}


@dataclass(frozen=True)
class TelnetSequence:
    """A telnet command found in the byte stream."""

    command: int
    option: int | None = None


# Option bytes from here up share their value with a command name
_FIRST_COMMAND_BYTE: Final[int] = ord(telopt.EOF)  # 236


def _name_option(option: int) -> str:
    if option >= _FIRST_COMMAND_BYTE:
        return str(option)
    return telopt.name_command(bytes([option]))


def describe_sequence(sequence: TelnetSequence) -> str:
    """Render a sequence as ``IAC <command> [<option>]`` for log output."""
    parts = ["IAC", telopt.name_command(bytes([sequence.command]))]
    if sequence.option is not None:
        parts.append(_name_option(sequence.option))
    return " ".join(parts)


def split_sequences(data: bytes) -> tuple[bytes, list[TelnetSequence]]:
    """
    Separate telnet commands from payload bytes.

    Args:
        data: Raw bytes received from the peer

    Returns:
        The payload with every IAC sequence removed (``IAC IAC`` becomes a
        single 255 byte) and the sequences in the order they were found
    """
    clean = bytearray()
    sequences: list[TelnetSequence] = []
    length = len(data)
    i = 0

    while i < length:
        byte = data[i]
        if byte != IAC:
            clean.append(byte)
            i += 1
            continue

        if i + 1 >= length:
            # Lone IAC at the end of the chunk
            i += 1
            continue

        command = data[i + 1]

        if command == IAC:
            clean.append(IAC)
            i += 2
            continue

        if command in NEGOTIATION_COMMANDS:
            if i + 2 < length:
                sequences.append(TelnetSequence(command, data[i + 2]))
                i += 3
            else:
                logger.debug("telnet_sequence_truncated", command=command)
                i = length
            continue

        if command == SB:
            end = data.find(bytes((IAC, SE)), i + 2)
            if end < 0:
                logger.debug("telnet_subnegotiation_truncated", dropped=length - i)
                i = length
            else:
                sequences.append(TelnetSequence(SB))
                i = end + 2
            continue

        sequences.append(TelnetSequence(command))
        i += 2

    return bytes(clean), sequences


def negotiate_reply(command: int, option: int) -> bytes:
    """
    Build the refusal for a received option negotiation.

    Args:
        command: One of DO, DONT, WILL or WONT
        option: Option code the peer named

    Returns:
        Three bytes: IAC, the response command, the option

    Raises:
        UnsupportedCommandError: If ``command`` is not a negotiation command
        ValueError: If ``option`` is not a byte value
    """
    response = REFUSAL_POLICY.get(command)
    if response is None:
        raise UnsupportedCommandError(command)
    if not 0 <= option <= 255:
        raise ValueError(f"Telnet option out of range: {option}")
    return bytes((IAC, response, option))


def handle_protocol(data: bytes) -> tuple[bytes, list[bytes]]:
    """
    Strip telnet commands from a chunk and build the replies it needs.

    Args:
        data: Raw bytes received from the peer

    Returns:
        The clean payload and the negotiation replies, in encounter order
    """
    clean, sequences = split_sequences(data)
    replies: list[bytes] = []

    for sequence in sequences:
        if sequence.option is None:
            continue
        replies.append(negotiate_reply(sequence.command, sequence.option))
        logger.debug("telnet_option_refused", received=describe_sequence(sequence))

    return clean, replies
