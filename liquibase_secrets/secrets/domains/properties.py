"""Render a resolved property set as a properties file or environment lines."""
import logging
import os
import shlex
import tempfile
from pathlib import Path
from typing import Union

from .errors import UnsafeValue
from .models import ResolvedPropertySet

logger = logging.getLogger(__name__)

FORMAT_ENV = "env"
FORMAT_EXPORT = "export"
FORMAT_PROPERTIES = "properties"
FORMATS = (FORMAT_ENV, FORMAT_EXPORT, FORMAT_PROPERTIES)

_PROPERTIES_ESCAPES = {
    "\\": "\\\\",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\f": "\\f",
}


def _escape_char(ch: str) -> str:
    if ch in _PROPERTIES_ESCAPES:
        return _PROPERTIES_ESCAPES[ch]
    code = ord(ch)
    if 0x20 <= code <= 0x7e:
        return ch
    # Properties files are read as ISO-8859-1; escape as UTF-16 code units
    units = ch.encode("utf-16-be")
    return "".join(
        "\\u%04X" % int.from_bytes(units[i:i + 2], "big") for i in range(0, len(units), 2)
    )


def _escape_property_value(value: str) -> str:
    escaped = "".join(_escape_char(ch) for ch in value)
    # Leading whitespace is stripped by properties readers
    if escaped.startswith(" "):
        escaped = "\\" + escaped
    return escaped


def render_properties(resolved: ResolvedPropertySet) -> str:
    """
    Render ``key=value`` lines in the fixed binding order.

    Values are escaped the way java.util.Properties reads them back, so a
    multi-line value still occupies a single line.
    """
    lines = [f"{key}={_escape_property_value(value)}" for key, value in resolved.file_pairs()]
    return "".join(f"{line}\n" for line in lines)


def render_env_lines(resolved: ResolvedPropertySet, export: bool = False) -> str:
    """
    Render ``NAME=value`` lines for a parent shell to assign.

    Args:
        resolved: Resolved property set
        export: Prefix each line with ``export`` and shell-quote the value,
            for use with ``eval "$(resolve-secrets ...)"``

    Raises:
        UnsafeValue: If any value contains a line break
    """
    lines = []
    for name, value in resolved.env_pairs():
        if "\n" in value or "\r" in value:
            raise UnsafeValue(name, "contains a line break and cannot be emitted as a single assignment")
        if export:
            lines.append(f"export {name}={shlex.quote(value)}")
        else:
            lines.append(f"{name}={value}")
    return "".join(f"{line}\n" for line in lines)


def render(resolved: ResolvedPropertySet, output_format: str) -> str:
    if output_format == FORMAT_PROPERTIES:
        return render_properties(resolved)
    if output_format == FORMAT_ENV:
        return render_env_lines(resolved)
    if output_format == FORMAT_EXPORT:
        return render_env_lines(resolved, export=True)
    raise ValueError(f"Unknown output format: {output_format}")


def write_output_file(content: str, output_path: Union[str, Path]) -> Path:
    """
    Write rendered content to a file atomically with owner-only permissions.

    The content is written to a temporary file in the destination directory
    and renamed into place, so readers never observe a partial file.

    Returns:
        Absolute path of the written file
    """
    target = Path(output_path).expanduser().resolve()
    target.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
        os.chmod(tmp_name, 0o600)
        os.replace(tmp_name, target)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise

    logger.info(f"Wrote properties to {target}")
    return target
