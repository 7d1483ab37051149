# flowdeps/core/loader.py
"""
Source loaders used by the import resolver.

A loader turns a location string into source text. Every failure is reported
as LoadError so the resolver never has to know where the text came from.
"""
import posixpath
from pathlib import Path
from typing import Mapping, Optional, Protocol

import structlog

from flowdeps.exceptions import LoadError
from flowdeps.util import strip_utf8_bom

log = structlog.get_logger(__name__)


class Loader(Protocol):
    def load(self, location: str) -> str: ...

    def normalize(self, importer_location: str, import_location: str) -> str: ...


class MemoryLoader:
    # serves sources from an in-memory mapping of location -> code.
    def __init__(self, sources: Optional[Mapping[str, str]] = None):
        self.sources = dict(sources or {})

    def load(self, location: str) -> str:
        try:
            return self.sources[location]
        except KeyError:
            raise LoadError(location, "no such source") from None

    def normalize(self, importer_location: str, import_location: str) -> str:
        return import_location


def normalize_location(location: str) -> str:
    # "./contracts/../contracts/Foo.cdc" -> "contracts/Foo.cdc"
    return posixpath.normpath(location.replace("\\", "/"))


def is_relative_location(location: str) -> bool:
    return location.startswith("./") or location.startswith("../")


class FileLoader:
    """Loads sources from the filesystem, relative to ``base_dir``.

    Relative imports (``./`` and ``../``) are resolved against the directory of
    the importing file, so ``import A from "./A.cdc"`` inside
    ``contracts/B.cdc`` refers to ``contracts/A.cdc``. Locations are kept as
    normalized posix paths relative to ``base_dir``.

    Name imports (``import "Foo"``) are looked up in ``contract_sources``, a
    mapping of contract name to its normalized source location.
    """

    def __init__(self, base_dir: Path, encoding: str = "utf-8", contract_sources: Optional[Mapping[str, str]] = None):
        self.base_dir = Path(base_dir).resolve()
        self.encoding = encoding
        self.contract_sources = dict(contract_sources or {})

    def path_for(self, location: str) -> Path:
        path = Path(location)
        return path if path.is_absolute() else self.base_dir / path

    def load(self, location: str) -> str:
        path = self.path_for(location)
        log.debug("loading_source", location=location, path=str(path))
        try:
            data = path.read_bytes()
        except OSError as e:
            raise LoadError(location, e.strerror or str(e)) from e
        try:
            return strip_utf8_bom(data).decode(self.encoding)
        except UnicodeDecodeError as e:
            raise LoadError(location, f"cannot decode as {self.encoding}: {e}") from e

    def normalize(self, importer_location: str, import_location: str) -> str:
        if not is_relative_location(import_location):
            return self.contract_sources.get(import_location, import_location)
        importer_dir = posixpath.dirname(normalize_location(importer_location))
        return normalize_location(posixpath.join(importer_dir, import_location))
