"""Document assembler - turns resolved fragments into the two theme files."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

# None is the unnamed section holding keys that precede the first header
SectionMap = dict[str | None, dict[str, str]]


@dataclass
class Fragment:
    """Post-substitution text of part of a structured-config file."""

    source: Path
    text: str = ""


@dataclass
class KeyValueFragment:
    """Sections parsed from one key/value file, values substituted."""

    source: Path
    sections: SectionMap = field(default_factory=dict)


@dataclass
class StructuredConfigDocument:
    fragments: list[Fragment] = field(default_factory=list)

    def append(self, fragment: Fragment) -> None:
        self.fragments.append(fragment)

    def render(self) -> str:
        """Concatenate fragments in order, adding no separators."""
        return "".join(fragment.text for fragment in self.fragments)


@dataclass
class KeyValueDocument:
    """Ordered section -> key -> value mapping.

    A key written again keeps its first position and takes the new value.
    """

    sections: SectionMap = field(default_factory=dict)

    def section(self, name: str | None) -> dict[str, str]:
        return self.sections.setdefault(name, {})

    def set(self, section: str | None, key: str, value: str) -> None:
        self.section(section)[key] = value

    def merge(self, fragment: KeyValueFragment) -> None:
        for name, entries in fragment.sections.items():
            self.section(name)
            for key, value in entries.items():
                self.set(name, key, value)

    def render(self) -> str:
        blocks: list[str] = []
        # unnamed section first, whenever it was created
        ordered = sorted(self.sections.items(), key=lambda item: item[0] is not None)
        for name, entries in ordered:
            lines: list[str] = []
            if name is None:
                if not entries:
                    continue
            else:
                lines.append(f"[{name}]")
            lines.extend(f"{key}={value}" for key, value in entries.items())
            blocks.append("".join(f"{line}\n" for line in lines))
        return "\n".join(blocks)


def assemble(
    fragments: list[Fragment], key_values: list[KeyValueFragment]
) -> tuple[StructuredConfigDocument, KeyValueDocument]:
    """Build both documents from a resolution plan's fragments."""
    rtconfig = StructuredConfigDocument()
    for part in fragments:
        rtconfig.append(part)
    reapertheme = KeyValueDocument()
    for fragment in key_values:
        reapertheme.merge(fragment)
    return rtconfig, reapertheme
