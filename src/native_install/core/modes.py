"""Permission expressions in chmod mode syntax.

Accepted forms:

    755  =755  +111  -022          octal, set / add / remove
    =rwx  u=rwx,go=rx  a+X  u+s     symbolic clauses

Execute bits (`x` and `X`) are only granted when the caller says the path may
be executable (binary-like targets and directories). A clause without a
who-list is filtered through the umask, as chmod does.
"""

import os
import re
from dataclasses import dataclass

_OCTAL = re.compile(r"(?P<op>[=+-]?)(?P<bits>[0-7]{1,4})")
_CLAUSE = re.compile(r"(?P<who>[ugoa]*)(?P<ops>(?:[=+-][rwxXst]*)+)")
_OP = re.compile(r"([=+-])([rwxXst]*)")

_WHO_BITS = {"u": 0o4700, "g": 0o2070, "o": 0o1007, "a": 0o7777}
_PERM_BITS = {"r": 0o444, "w": 0o222, "x": 0o111, "X": 0o111, "s": 0o6000, "t": 0o1000}
_EXEC_BITS = 0o111


def current_umask() -> int:
    """Read the process umask without changing it."""
    mask = os.umask(0)
    os.umask(mask)
    return mask


@dataclass(frozen=True)
class ModeClause:
    who: str
    ops: tuple[tuple[str, str], ...]


@dataclass(frozen=True)
class ModeSpec:
    """A parsed mode expression; see the module docstring for the syntax."""

    text: str
    octal: tuple[str, int] | None
    clauses: tuple[ModeClause, ...]

    @classmethod
    def parse(cls, text: str) -> "ModeSpec":
        """Parse a mode expression.

        Raises:
            ValueError: If text is not a valid mode
        """
        octal = _OCTAL.fullmatch(text)
        if octal is not None:
            return cls(text=text, octal=(octal.group("op"), int(octal.group("bits"), 8)), clauses=())

        if not text:
            raise ValueError("Empty mode")

        clauses: list[ModeClause] = []
        for part in text.split(","):
            match = _CLAUSE.fullmatch(part)
            if match is None:
                raise ValueError(f"Invalid mode '{text}'")
            ops = tuple((op, perms) for op, perms in _OP.findall(match.group("ops")))
            clauses.append(ModeClause(who=match.group("who"), ops=ops))
        return cls(text=text, octal=None, clauses=tuple(clauses))

    def apply(self, current: int, *, executable: bool, umask: int) -> int:
        """Compute the new permission bits for a file.

        Args:
            current: Existing permission bits (only the low 12 bits are used)
            executable: Whether execute bits may be granted
            umask: Process umask, applied to clauses without a who-list

        Returns:
            The new permission bits
        """
        mode = current & 0o7777
        grant_mask = 0o7777 if executable else 0o7777 & ~_EXEC_BITS

        if self.octal is not None:
            op, bits = self.octal
            if op == "+":
                return mode | (bits & grant_mask)
            if op == "-":
                return mode & ~bits
            return bits & grant_mask

        for clause in self.clauses:
            if clause.who:
                affected = 0
                for who in clause.who:
                    affected |= _WHO_BITS[who]
                settable = affected
            else:
                affected = 0o7777
                settable = 0o7777 & ~umask

            for op, perms in clause.ops:
                bits = 0
                for perm in perms:
                    bits |= _PERM_BITS[perm]
                bits &= grant_mask
                if op == "=":
                    mode = (mode & ~affected) | (bits & settable)
                elif op == "+":
                    mode |= bits & settable
                else:
                    mode &= ~(bits & settable)
        return mode


BINARY_MODE = ModeSpec.parse("=rwx")
FILE_MODE = ModeSpec.parse("=rw")
