"""Command-line flag parsing, typed readers, and runtime flag merging.

Inputs:
- Raw argument vectors (`sys.argv[1:]`), optional per-agent `FlagSpec` declarations,
  and default/override runtime flag mappings.
Output:
- `FlagStore` instances holding parsed values and positionals, plus flat argument
  lists ready to hand to the agent runtime.
Example:
```python
from agentrunner.flags import FlagSpec, build_runtime_flags, parse_args

store = parse_args(["./src", "--output", "report.md", "--fix"], [FlagSpec("output")])
store.read_string_flag("output")          # "report.md"
store.read_boolean_flag("fix", False)     # True
store.remove_agent_flags(["output", "fix"])
build_runtime_flags({"model": "sonnet"}, store.remaining_flags())
```
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .constants import RUNTIME_FLAG_KEYS
from .errors import UsageError
from .utils import compact_json, kebab_case, name_variants

FlagValue = Union[str, bool, List[str]]
FlagNames = Union[str, Sequence[str]]

FLAG_KINDS = ("string", "number", "boolean")

_NEGATIVE_NUMBER_RE = re.compile(r"^-\d+(\.\d+)?$")
_SHORT_CLUSTER_RE = re.compile(r"^-[A-Za-z]+$")


@dataclass(frozen=True)
class FlagSpec:
    """Declares how one flag is parsed and documented.

    Inputs:
    - name: canonical flag name without dashes.
    - kind: `"string"`, `"number"`, or `"boolean"`; booleans never consume a value.
    - multiple: repeated occurrences accumulate into a list.
    - aliases: extra names (for example `"h"` for `"help"`).
    Output:
    - FlagSpec: an immutable declaration consumed by `parse_args` and usage rendering.
    Example:
    ```python
    FlagSpec("depth", kind="number", default=1, help="Crawl depth")
    ```
    """

    name: str
    kind: str = "string"
    multiple: bool = False
    aliases: Tuple[str, ...] = ()
    default: Any = None
    help: str = ""
    metavar: Optional[str] = None
    choices: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.kind not in FLAG_KINDS:
            raise ValueError(f"Unknown flag kind for --{self.name}: {self.kind!r}")

    @property
    def takes_value(self) -> bool:
        return self.kind != "boolean"

    def names(self) -> List[str]:
        return [self.name, *self.aliases]

    def usage_label(self) -> str:
        labels = []
        for alias in self.aliases:
            labels.append(f"-{alias}" if len(alias) == 1 else f"--{alias}")
        main = f"--{self.name}"
        if self.takes_value:
            main += f" <{self.metavar or self.kind}>"
        return ", ".join([main, *labels])


def _spec_index(specs: Optional[Iterable[FlagSpec]]) -> Dict[str, FlagSpec]:
    index: Dict[str, FlagSpec] = {}
    for spec in specs or []:
        for name in spec.names():
            for variant in name_variants(name):
                existing = index.get(variant)
                if existing is not None and existing is not spec:
                    raise ValueError(f"Flag name declared twice: {variant!r}")
                index[variant] = spec
    return index


def is_short_cluster(token: str) -> bool:
    """True for single-dash letter clusters such as `-h` or `-hv`."""
    return bool(_SHORT_CLUSTER_RE.match(token))


def _canonical_name(name: str, spec: Optional[FlagSpec]) -> str:
    # Every spelling of one flag shares a key so the last occurrence wins.
    if spec is not None:
        return spec.name
    return name if len(name) == 1 else kebab_case(name)


def _looks_like_flag(token: str) -> bool:
    if not token.startswith("-") or token == "-":
        return False
    return not _NEGATIVE_NUMBER_RE.match(token)


def _coerce_inline(raw: str, spec: Optional[FlagSpec]) -> FlagValue:
    if spec is not None and spec.kind == "boolean":
        lowered = raw.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
    return raw


def _store(values: Dict[str, FlagValue], name: str, value: FlagValue, spec: Optional[FlagSpec]) -> None:
    if spec is not None and spec.multiple and isinstance(value, str):
        existing = values.get(name)
        bucket = list(existing) if isinstance(existing, list) else []
        bucket.append(value)
        values[name] = bucket
        return
    values[name] = value


@dataclass
class FlagStore:
    """Parsed command-line state owned by a single agent run.

    Inputs:
    - values: flag name -> `str | bool | list[str]`.
    - positionals: non-flag tokens in argv order.
    Output:
    - FlagStore: typed readers with default fallback plus the agent-flag stripper.
    Example:
    ```python
    store = parse_args(["--count", "abc"])
    store.read_number_flag("count", 10)  # 10
    ```
    """

    values: Dict[str, FlagValue] = field(default_factory=dict)
    positionals: List[str] = field(default_factory=list)

    def _candidate_keys(self, names: FlagNames) -> List[str]:
        raw = [names] if isinstance(names, str) else list(names)
        keys: List[str] = []
        for name in raw:
            for variant in name_variants(name):
                if variant not in keys:
                    keys.append(variant)
        return keys

    def lookup(self, names: FlagNames) -> Optional[FlagValue]:
        for key in self._candidate_keys(names):
            if key in self.values:
                return self.values[key]
        return None

    def has(self, names: FlagNames) -> bool:
        return any(key in self.values for key in self._candidate_keys(names))

    def positional(self, index: int, default: Optional[str] = None) -> Optional[str]:
        if 0 <= index < len(self.positionals):
            return self.positionals[index]
        return default

    def read_string_flag(self, names: FlagNames, default: Optional[str] = None) -> Optional[str]:
        """Return a non-empty string value, else `default`.

        Inputs:
        - names: a flag name or several names checked in order.
        - default: fallback when the flag is absent, boolean, or empty.
        Output:
        - The flag's string value (the last one for multi-valued flags) or `default`.
        Example:
        ```python
        parse_args(["--output=report.md"]).read_string_flag("output")  # "report.md"
        ```
        """
        raw = self.lookup(names)
        if isinstance(raw, list):
            raw = raw[-1] if raw else None
        if isinstance(raw, str) and raw:
            return raw
        return default

    def read_number_flag(self, names: FlagNames, default: int) -> int:
        """Return the flag parsed as an integer, or `default` when it is absent or unparseable."""
        raw = self.read_string_flag(names)
        if raw is None:
            return default
        text = raw.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return default
        if not math.isfinite(number):
            return default
        return int(number)

    def read_boolean_flag(self, names: FlagNames, default: bool = False) -> bool:
        """Return True for a bare `--flag` or `--flag=true`, False for an explicit false.

        Any other stored value (or absence) yields `default`.
        """
        raw = self.lookup(names)
        if raw is True:
            return True
        if raw is False:
            return False
        if isinstance(raw, str):
            lowered = raw.strip().lower()
            if lowered == "true":
                return True
            if lowered == "false":
                return False
        return default

    def collect_repeated_flag(self, names: FlagNames) -> List[str]:
        """Collect every string value given for a flag, in argv order."""
        collected: List[str] = []
        for key in self._candidate_keys(names):
            raw = self.values.get(key)
            if isinstance(raw, str) and raw:
                collected.append(raw)
            elif isinstance(raw, list):
                collected.extend(item for item in raw if isinstance(item, str) and item)
        return collected

    def remove_agent_flags(self, names: Iterable[str]) -> None:
        """Delete agent-specific flags (and their camelCase/kebab-case spellings).

        Inputs:
        - names: flag names consumed by the agent itself.
        Output:
        - None. Later reads of the removed names return absent; other keys are untouched.
        Example:
        ```python
        store.remove_agent_flags(["output", "create-issues", "help", "h"])
        ```
        """
        for key in self._candidate_keys(list(names)):
            self.values.pop(key, None)

    def remaining_flags(self) -> Dict[str, FlagValue]:
        return {k: (list(v) if isinstance(v, list) else v) for k, v in self.values.items()}


ParsedArguments = FlagStore


def parse_args(argv: Sequence[str], specs: Optional[Iterable[FlagSpec]] = None) -> FlagStore:
    """Parse an argument vector into a `FlagStore`.

    Inputs:
    - argv: argument tokens excluding the program name. The sequence is not mutated.
    - specs: optional declarations. Declared booleans never consume a value; declared
      string/number flags must be followed by a value. Undeclared flags consume the
      next token when it is not itself a flag, otherwise they are boolean True.
      Every spelling of a flag is stored under one key (the declared name, else
      kebab-case), so the last occurrence wins.
    Output:
    - FlagStore with values and positionals.
    Example:
    ```python
    store = parse_args(["https://example.com", "--depth", "2", "--verbose"])
    store.positionals  # ["https://example.com"]
    ```
    """
    tokens = [str(t) for t in (argv or [])]
    index = _spec_index(specs)
    values: Dict[str, FlagValue] = {}
    positionals: List[str] = []

    i = 0
    while i < len(tokens):
        token = tokens[i]
        if token == "--":
            positionals.extend(tokens[i + 1:])
            break

        if token.startswith("--") and len(token) > 2 and not token.startswith("--="):
            body = token[2:]
            if "=" in body:
                name, raw = body.split("=", 1)
                spec = index.get(name)
                _store(values, _canonical_name(name, spec), _coerce_inline(raw, spec), spec)
            else:
                name = body
                spec = index.get(name)
                nxt = tokens[i + 1] if i + 1 < len(tokens) else None
                if spec is not None and not spec.takes_value:
                    value: FlagValue = True
                elif nxt is not None and not _looks_like_flag(nxt):
                    value = nxt
                    i += 1
                elif spec is not None:
                    raise UsageError(f"--{name} requires a value")
                else:
                    value = True
                _store(values, _canonical_name(name, spec), value, spec)
        elif is_short_cluster(token):
            for letter in token[1:]:
                spec = index.get(letter)
                values[_canonical_name(letter, spec)] = True
        else:
            positionals.append(token)
        i += 1

    return FlagStore(values=values, positionals=positionals)


@dataclass
class RuntimeFlags:
    """Flags handed to the agent runtime; `None` fields are simply not passed."""

    model: Optional[str] = None
    permission_mode: Optional[str] = None
    allowed_tools: Optional[List[str]] = None
    settings: Optional[str] = None
    mcp_config: Optional[str] = None
    append_system_prompt: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_mapping(self) -> Dict[str, Any]:
        fields = {
            "model": self.model,
            "permission-mode": self.permission_mode,
            "allowed-tools": list(self.allowed_tools) if self.allowed_tools is not None else None,
            "settings": self.settings,
            "mcp-config": self.mcp_config,
            "append-system-prompt": self.append_system_prompt,
        }
        mapping = {k: fields[k] for k in RUNTIME_FLAG_KEYS if fields[k] is not None}
        for key, value in (self.extra or {}).items():
            if value is not None:
                mapping[kebab_case(key)] = value
        return mapping

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "RuntimeFlags":
        normalized = normalize_flag_mapping(mapping)
        tools = normalized.pop("allowed-tools", None)
        if isinstance(tools, str):
            tools = [t for t in tools.split() if t]
        return cls(
            model=normalized.pop("model", None),
            permission_mode=normalized.pop("permission-mode", None),
            allowed_tools=list(tools) if tools is not None else None,
            settings=normalized.pop("settings", None),
            mcp_config=normalized.pop("mcp-config", None),
            append_system_prompt=normalized.pop("append-system-prompt", None),
            extra=normalized,
        )


RuntimeFlagsLike = Union[RuntimeFlags, Mapping[str, Any], None]


def normalize_flag_mapping(flags: RuntimeFlagsLike) -> Dict[str, Any]:
    """Return a kebab-case keyed copy of a runtime flag mapping."""
    if flags is None:
        return {}
    if isinstance(flags, RuntimeFlags):
        return flags.to_mapping()
    normalized: Dict[str, Any] = {}
    for key, value in flags.items():
        normalized[key if len(key) == 1 else kebab_case(key)] = value
    return normalized


def merge_runtime_flags(defaults: RuntimeFlagsLike, overrides: RuntimeFlagsLike = None) -> Dict[str, Any]:
    """Merge default runtime flags with caller overrides, key by key.

    Inputs:
    - defaults: the agent's default flags.
    - overrides: user-supplied flags of the same shape; `None` values do not override.
    Output:
    - Ordered mapping: default keys first (overridden values replace wholesale, lists
      included), then override-only keys in their given order.
    Example:
    ```python
    merge_runtime_flags({"model": "a", "permission-mode": "default"},
                        {"permissionMode": "acceptEdits"})
    # {"model": "a", "permission-mode": "acceptEdits"}
    ```
    """
    base = normalize_flag_mapping(defaults)
    extra = normalize_flag_mapping(overrides)
    merged: Dict[str, Any] = {}
    for key, value in base.items():
        override = extra.get(key)
        merged[key] = override if override is not None else value
    for key, value in extra.items():
        if key not in merged and value is not None:
            merged[key] = value
    return merged


def flatten_runtime_flags(flags: Mapping[str, Any]) -> List[str]:
    """Turn a merged flag mapping into CLI tokens (`True` -> `--key`, others `--key value`).

    Single-letter keys come from short clusters and are emitted as `-x`.
    """
    tokens: List[str] = []
    for key, value in flags.items():
        if value is None or value is False:
            continue
        flag = f"-{key}" if len(key) == 1 else f"--{key}"
        if value is True:
            tokens.append(flag)
        elif isinstance(value, (list, tuple)):
            items = [str(v) for v in value if v is not None and str(v)]
            if items:
                tokens.extend([flag, " ".join(items)])
        elif isinstance(value, dict):
            tokens.extend([flag, compact_json(value)])
        else:
            tokens.extend([flag, str(value)])
    return tokens


def build_runtime_flags(defaults: RuntimeFlagsLike, overrides: RuntimeFlagsLike = None) -> List[str]:
    return flatten_runtime_flags(merge_runtime_flags(defaults, overrides))
