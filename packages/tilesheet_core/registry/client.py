"""Tilesheet registry backends: MediaWiki (Tilesheets extension) and local JSON."""

from __future__ import annotations

from abc import ABC, abstractmethod
from logging import getLogger
from pathlib import Path
from typing import Any
import json

import requests

from .credentials import Credentials
from .schema import (
    ApiError,
    ImageInfo,
    NewTile,
    RegistryDecodeError,
    RegistryRequestError,
    SheetRecord,
    TileRecord,
    parse_records,
)

logger = getLogger("tilesheet_core.registry.client")

DEFAULT_TIMEOUT_S = 60.0
QUERY_LIMIT = "max"


class TilesheetRegistry(ABC):
    """Authoritative store of sheets, tile placements and sheet files."""

    def __init__(self) -> None:
        self.malformed_records = 0

    def login(self, username: str, password: str) -> None:
        return None

    @abstractmethod
    def get_token(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def query_sheets(self) -> list[SheetRecord]:
        raise NotImplementedError

    @abstractmethod
    def query_tiles(self, namespace: str) -> list[TileRecord]:
        raise NotImplementedError

    @abstractmethod
    def create_sheet(self, token: str, namespace: str, sizes: list[int], *, summary: str = "") -> None:
        raise NotImplementedError

    @abstractmethod
    def add_tiles(self, token: str, namespace: str, batch: list[NewTile], *, summary: str = "") -> None:
        raise NotImplementedError

    @abstractmethod
    def delete_tiles(self, token: str, ids: list[int], *, summary: str = "") -> None:
        raise NotImplementedError

    @abstractmethod
    def download_file(self, filename: str) -> bytes | None:
        raise NotImplementedError

    @abstractmethod
    def upload(
        self,
        filename: str,
        token: str,
        *,
        content: bytes | None = None,
        filekey: str | None = None,
        comment: str = "",
        text: str = "",
    ) -> None:
        raise NotImplementedError

    def _parse(self, model, raw_items: Any, *, context: str) -> list:
        records, skipped = parse_records(model, raw_items, context=context)
        self.malformed_records += skipped
        return records


def _upload_source(content: bytes | None, filekey: str | None) -> None:
    if (content is None) == (filekey is None):
        raise ValueError("Provide exactly one of content or filekey")


# addtiles entries are joined with this separator.
BATCH_SEPARATOR = "|"


def _check_batch_names(batch: list[NewTile]) -> None:
    bad = [tile.name for tile in batch if BATCH_SEPARATOR in tile.name]
    if bad:
        raise RegistryRequestError(
            f"Tile names may not contain '{BATCH_SEPARATOR}': {bad}",
            error_code="invalid_tile_name",
        )


class MediaWikiRegistry(TilesheetRegistry):
    def __init__(
        self,
        api_url: str,
        *,
        user_agent: str,
        session: requests.Session | None = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        super().__init__()
        self.api_url = api_url
        self.timeout_s = timeout_s
        self._session = session or requests.Session()
        self._session.headers["User-Agent"] = user_agent

    @classmethod
    def from_credentials(cls, creds: Credentials, **kwargs: Any) -> "MediaWikiRegistry":
        registry = cls(creds.baseapi, user_agent=creds.useragent, **kwargs)
        registry.login(creds.username, creds.password)
        return registry

    def _request(self, method: str, params: dict[str, Any], *, files: dict[str, Any] | None = None) -> dict[str, Any]:
        payload = {**params, "format": "json", "formatversion": "2"}
        action = params.get("action", "?")
        try:
            if method == "GET":
                response = self._session.get(self.api_url, params=payload, timeout=self.timeout_s)
            else:
                response = self._session.post(self.api_url, data=payload, files=files, timeout=self.timeout_s)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise RegistryRequestError(
                f"Registry {action} request failed: {exc}",
                error_code="network_error",
            ) from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise RegistryDecodeError(
                f"Registry {action} returned non-JSON response",
                error_code="invalid_response",
            ) from exc
        if not isinstance(body, dict):
            raise RegistryDecodeError(
                f"Registry {action} returned {type(body).__name__}, expected an object",
                error_code="invalid_response",
            )
        if "error" in body:
            err = ApiError.model_validate(body["error"] if isinstance(body["error"], dict) else {})
            raise RegistryRequestError(
                f"Registry {action} error {err.code}: {err.info}",
                error_code=f"api_{err.code}",
            )
        return body

    @staticmethod
    def _block(body: dict[str, Any], *keys: str) -> Any:
        current: Any = body
        for key in keys:
            if not isinstance(current, dict) or key not in current:
                raise RegistryDecodeError(
                    f"Registry response is missing {'.'.join(keys)}",
                    error_code="invalid_envelope",
                )
            current = current[key]
        return current

    def _query_all(self, params: dict[str, Any], list_key: str) -> list[Any]:
        items: list[Any] = []
        cont: dict[str, Any] = {}
        while True:
            body = self._request("GET", {"action": "query", **params, **cont})
            chunk = self._block(body, "query", list_key)
            if not isinstance(chunk, list):
                raise RegistryDecodeError(
                    f"Registry query.{list_key} is not a list",
                    error_code="invalid_envelope",
                )
            items.extend(chunk)
            next_cont = body.get("continue")
            if not isinstance(next_cont, dict):
                return items
            cont = next_cont

    def _fetch_token(self, kind: str) -> str:
        body = self._request("GET", {"action": "query", "meta": "tokens", "type": kind})
        token = self._block(body, "query", "tokens", f"{kind}token")
        if not isinstance(token, str) or not token:
            raise RegistryDecodeError(f"Empty {kind} token", error_code="invalid_token")
        return token

    def login(self, username: str, password: str) -> None:
        logger.info("[REGISTRY] Logging in to %s as %s", self.api_url, username)
        token = self._fetch_token("login")
        body = self._request(
            "POST",
            {"action": "login", "lgname": username, "lgpassword": password, "lgtoken": token},
        )
        result = self._block(body, "login", "result")
        if result != "Success":
            reason = body.get("login", {}).get("reason", result)
            raise RegistryRequestError(f"Login failed: {reason}", error_code="login_failed")

    def get_token(self) -> str:
        return self._fetch_token("csrf")

    def query_sheets(self) -> list[SheetRecord]:
        raw = self._query_all({"list": "tilesheets", "tslimit": QUERY_LIMIT}, "tilesheets")
        return self._parse(SheetRecord, raw, context="tilesheets")

    def query_tiles(self, namespace: str) -> list[TileRecord]:
        raw = self._query_all({"list": "tiles", "tsmod": namespace, "tslimit": QUERY_LIMIT}, "tiles")
        return self._parse(TileRecord, raw, context=f"tiles of {namespace}")

    def create_sheet(self, token: str, namespace: str, sizes: list[int], *, summary: str = "") -> None:
        logger.info("[REGISTRY] Creating sheet %s with sizes %s", namespace, sizes)
        self._request(
            "POST",
            {
                "action": "createsheet",
                "tsmod": namespace,
                "tssizes": "|".join(str(s) for s in sizes),
                "tssummary": summary,
                "tstoken": token,
            },
        )

    def add_tiles(self, token: str, namespace: str, batch: list[NewTile], *, summary: str = "") -> None:
        _check_batch_names(batch)
        self._request(
            "POST",
            {
                "action": "addtiles",
                "tsmod": namespace,
                "tsimport": BATCH_SEPARATOR.join(tile.import_line() for tile in batch),
                "tssummary": summary,
                "tstoken": token,
            },
        )

    def delete_tiles(self, token: str, ids: list[int], *, summary: str = "") -> None:
        self._request(
            "POST",
            {
                "action": "deletetiles",
                "tsids": "|".join(str(i) for i in ids),
                "tssummary": summary,
                "tstoken": token,
            },
        )

    def download_file(self, filename: str) -> bytes | None:
        body = self._request(
            "GET",
            {"action": "query", "prop": "imageinfo", "iiprop": "url", "titles": f"File:{filename}"},
        )
        pages = self._block(body, "query", "pages")
        if not isinstance(pages, list) or not pages:
            raise RegistryDecodeError("Registry query.pages is empty", error_code="invalid_envelope")
        page = pages[0] if isinstance(pages[0], dict) else {}
        if page.get("missing") or not page.get("imageinfo"):
            return None
        infos = self._parse(ImageInfo, page["imageinfo"], context=f"imageinfo of {filename}")
        if not infos:
            raise RegistryDecodeError(f"No usable imageinfo for {filename}", error_code="invalid_imageinfo")

        try:
            response = self._session.get(infos[0].url, timeout=self.timeout_s)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise RegistryRequestError(f"Download of {filename} failed: {exc}", error_code="download_failed") from exc
        return response.content

    def upload(
        self,
        filename: str,
        token: str,
        *,
        content: bytes | None = None,
        filekey: str | None = None,
        comment: str = "",
        text: str = "",
    ) -> None:
        _upload_source(content, filekey)
        params: dict[str, Any] = {
            "action": "upload",
            "filename": filename,
            "comment": comment,
            "text": text,
            "token": token,
            "ignorewarnings": "1",
        }
        files = None
        if filekey is not None:
            params["filekey"] = filekey
        else:
            files = {"file": (filename, content, "image/png")}
        body = self._request("POST", params, files=files)
        result = self._block(body, "upload", "result")
        if result != "Success":
            raise RegistryRequestError(f"Upload of {filename} returned {result}", error_code="upload_failed")


class LocalRegistry(TilesheetRegistry):
    """Registry kept in ``<root>/registry.json`` with files under ``<root>/files``."""

    TOKEN = "local+\\"

    def __init__(self, root: Path) -> None:
        super().__init__()
        self.root = root
        self.state_path = root / "registry.json"
        self.files_dir = root / "files"

    def _load(self) -> dict[str, Any]:
        if not self.state_path.is_file():
            return {"sheets": {}, "tiles": [], "next_id": 1}
        try:
            state = json.loads(self.state_path.read_text(encoding="utf-8"))
        except ValueError as exc:
            raise RegistryDecodeError(
                f"Registry state {self.state_path} is not valid JSON",
                error_code="invalid_response",
            ) from exc
        if not isinstance(state, dict):
            raise RegistryDecodeError(f"Registry state {self.state_path} is not an object", error_code="invalid_envelope")
        state.setdefault("sheets", {})
        state.setdefault("tiles", [])
        state.setdefault("next_id", 1)
        return state

    def _save(self, state: dict[str, Any]) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        self.state_path.write_text(json.dumps(state, indent=2, sort_keys=True), encoding="utf-8")

    def _check_token(self, token: str) -> None:
        if token != self.TOKEN:
            raise RegistryRequestError("Invalid token", error_code="api_badtoken")

    def get_token(self) -> str:
        return self.TOKEN

    def query_sheets(self) -> list[SheetRecord]:
        sheets = self._load()["sheets"]
        if not isinstance(sheets, dict):
            raise RegistryDecodeError("Registry sheets block is not an object", error_code="invalid_envelope")
        raw = [{"mod": name, "sizes": sizes} for name, sizes in sorted(sheets.items())]
        return self._parse(SheetRecord, raw, context="tilesheets")

    def query_tiles(self, namespace: str) -> list[TileRecord]:
        raw = [t for t in self._load()["tiles"] if isinstance(t, dict) and t.get("mod") == namespace]
        return self._parse(TileRecord, raw, context=f"tiles of {namespace}")

    def create_sheet(self, token: str, namespace: str, sizes: list[int], *, summary: str = "") -> None:
        self._check_token(token)
        state = self._load()
        if namespace in state["sheets"]:
            raise RegistryRequestError(f"Sheet {namespace} already exists", error_code="api_sheetexists")
        state["sheets"][namespace] = list(sizes)
        self._save(state)

    def add_tiles(self, token: str, namespace: str, batch: list[NewTile], *, summary: str = "") -> None:
        self._check_token(token)
        _check_batch_names(batch)
        state = self._load()
        if namespace not in state["sheets"]:
            raise RegistryRequestError(f"No sheet for {namespace}", error_code="api_nosheet")
        tiles = [t for t in state["tiles"] if t.get("mod") == namespace]
        names = {t["name"] for t in tiles}
        cells = {(t["x"], t["y"], t.get("z", 0)) for t in tiles}
        for tile in batch:
            if tile.name in names or (tile.x, tile.y, tile.z) in cells:
                raise RegistryRequestError(
                    f"Tile {tile.name} collides with an existing entry",
                    error_code="api_tileexists",
                )
            names.add(tile.name)
            cells.add((tile.x, tile.y, tile.z))
        for tile in batch:
            state["tiles"].append(
                {"id": state["next_id"], "mod": namespace, "name": tile.name, "x": tile.x, "y": tile.y, "z": tile.z}
            )
            state["next_id"] += 1
        self._save(state)

    def delete_tiles(self, token: str, ids: list[int], *, summary: str = "") -> None:
        self._check_token(token)
        state = self._load()
        wanted = set(ids)
        known = {t.get("id") for t in state["tiles"]}
        unknown = sorted(wanted - known)
        if unknown:
            raise RegistryRequestError(f"Unknown tile ids: {unknown}", error_code="api_notile")
        state["tiles"] = [t for t in state["tiles"] if t.get("id") not in wanted]
        self._save(state)

    def download_file(self, filename: str) -> bytes | None:
        path = self.files_dir / filename
        if not path.is_file():
            return None
        return path.read_bytes()

    def upload(
        self,
        filename: str,
        token: str,
        *,
        content: bytes | None = None,
        filekey: str | None = None,
        comment: str = "",
        text: str = "",
    ) -> None:
        self._check_token(token)
        _upload_source(content, filekey)
        if filekey is not None:
            raise RegistryRequestError(
                f"Local registry has no upload stash for filekey {filekey}",
                error_code="api_nofilekey",
            )
        self.files_dir.mkdir(parents=True, exist_ok=True)
        (self.files_dir / filename).write_bytes(content)

