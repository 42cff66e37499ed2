"""
Placeholder binding.

Pairs each scanned placeholder with its value, either positionally or by name.
Arity is checked for the whole template before any value is formatted, so a
mismatch never leaves a half-rendered statement behind.
"""

from collections.abc import Mapping
from typing import Any, List, Sequence, Tuple

from sql.errors import ArityMismatch
from sql.scanner import Placeholder

Binding = Tuple[Placeholder, Any]


def bind_positional(
    template: str,
    found: Sequence[Placeholder],
    args: Sequence[Any],
) -> List[Binding]:
    """Bind placeholders to arguments in left-to-right order.

    Raises:
        ArityMismatch: Counts differ, or a named placeholder is present
    """
    named = [p.token for p in found if p.name is not None]
    if named:
        raise ArityMismatch(
            f"Named placeholders ({', '.join(named)}) require named arguments in [{template}]"
        )
    if len(found) != len(args):
        raise ArityMismatch(
            f"Number of args ({len(args)}) doesn't match number of placeholders "
            f"({len(found)}) in [{template}]"
        )
    return list(zip(found, args))


def bind_named(
    template: str,
    found: Sequence[Placeholder],
    values: Mapping,
) -> List[Binding]:
    """Bind placeholders to values looked up by placeholder name.

    A name may appear in several placeholders; each receives the same value.

    Raises:
        ArityMismatch: A placeholder has no name, a name has no value, or a
            supplied value is never referenced
    """
    if not isinstance(values, Mapping):
        raise ArityMismatch(
            f"Named arguments must be a mapping, {type(values).__name__} given for [{template}]"
        )

    unnamed = [str(p.offset) for p in found if p.name is None]
    if unnamed:
        raise ArityMismatch(
            f"Positional placeholders at offsets {', '.join(unnamed)} "
            f"cannot be bound by name in [{template}]"
        )

    referenced = {p.name for p in found}
    missing = [name for name in dict.fromkeys(p.name for p in found) if name not in values]
    unused = [str(key) for key in values if key not in referenced]
    if missing or unused:
        problems = []
        if missing:
            problems.append(f"missing values for {', '.join(missing)}")
        if unused:
            problems.append(f"unused arguments {', '.join(unused)}")
        raise ArityMismatch(f"Named arguments don't match placeholders ({'; '.join(problems)}) in [{template}]")

    return [(p, values[p.name]) for p in found]
