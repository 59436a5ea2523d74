from pathlib import Path

from fintrack.models import ParserInfo


class ParserRegistry:
    def __init__(self):
        self._parsers: dict[str, ParserInfo] = {}
        self._by_extension: dict[str, list[ParserInfo]] = {}
        self._by_mime: dict[str, list[ParserInfo]] = {}

    def register(self, info: ParserInfo) -> None:
        self._parsers[info.key] = info
        for ext in info.file_extensions:
            self._by_extension.setdefault(ext.lower(), []).append(info)
        for mime in info.mime_types:
            self._by_mime.setdefault(mime.lower(), []).append(info)

    def get_by_key(self, key: str) -> ParserInfo | None:
        return self._parsers.get(key)

    def get_for_mime(self, mime: str) -> ParserInfo | None:
        parsers = self._by_mime.get(mime.split(";")[0].strip().lower(), [])
        return parsers[0] if parsers else None

    def get_for_file(self, file_path: Path, mime_hint: str | None = None) -> ParserInfo | None:
        """Mime hint first, then a parser whose detect() accepts the file, then the first for the extension."""
        if mime_hint:
            info = self.get_for_mime(mime_hint)
            if info is not None:
                return info
        parsers = self._by_extension.get(file_path.suffix.lower(), [])
        for p in parsers:
            if p.detect and p.detect(file_path):
                return p
        return parsers[0] if parsers else None

    def list_all(self) -> list[ParserInfo]:
        return list(self._parsers.values())


registry = ParserRegistry()
