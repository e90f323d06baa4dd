import logging
import sys
from pathlib import Path

from quillmark import __version__
from quillmark.services.document import Document
from quillmark.services.metadata_completion import CatalogEntry
from quillmark.services.syntax_engine import MetadataSyntaxEngine
from quillmark.services.template_catalog import CatalogError, load_catalog
from quillmark.settings_store import LoadedSettings, load_engine_settings

APP_NAME = "Quillmark"
OUTLINE_ARG = "--outline"
CATALOG_ARG = "--catalog"
SETTINGS_ARG = "--settings"
VERBOSE_ARG = "--verbose"

logger = logging.getLogger("quillmark")


def _split_startup_args(argv: list[str]) -> tuple[list[str], dict[str, str | bool]]:
    filtered: list[str] = []
    options: dict[str, str | bool] = {}
    args = list(argv)
    while args:
        arg = args.pop(0)
        if arg == VERBOSE_ARG:
            options["verbose"] = True
            continue
        if arg in (OUTLINE_ARG, CATALOG_ARG, SETTINGS_ARG):
            value = args.pop(0) if args else ""
            options[arg.lstrip("-")] = value
            continue
        filtered.append(arg)
    return filtered, options


def _read_text(path_value: str | Path | None) -> str:
    text = str(path_value or "").strip()
    if not text:
        return ""
    candidate = Path(text).expanduser()
    if not candidate.is_file():
        logger.warning("Cannot open %s: not a file", candidate)
        return ""
    try:
        return candidate.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Cannot open %s: %s", candidate, exc)
        return ""


def _load_startup_catalog(store: LoadedSettings, override: str | None) -> list[CatalogEntry]:
    manifest = str(override or store.get("catalog.manifest_path", "") or "").strip()
    if not manifest:
        return []
    try:
        return load_catalog(manifest, production_only=bool(store.get("completion.production_only", False)))
    except CatalogError as exc:
        logger.error("Template catalog unavailable (%s): %s", exc.code, exc)
        return []


def print_outline(text: str, catalog: list[CatalogEntry], settings: dict) -> None:
    engine = MetadataSyntaxEngine.from_settings(settings, catalog=catalog)
    document = Document(text)
    result = engine.detect(document)
    for block in result.blocks:
        print(f"block {block.open_line}-{block.close_line}")
        for kw in block.keywords:
            print(f"  {kw.kind.value}: {kw.identifier}")
        for entry in block.yaml_entries:
            print(f"  {entry.key} = {entry.value!r} ({entry.value_type.value})")
    for orphan in result.orphan_delimiters:
        print(f"orphan delimiter {orphan.line}")
    for rule in result.horizontal_rules:
        print(f"horizontal rule {rule.line}")


if __name__ == "__main__":
    cli_args, options = _split_startup_args(sys.argv[1:])
    logging.basicConfig(
        level=logging.DEBUG if options.get("verbose") else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    store = load_engine_settings(str(options.get("settings") or "") or None)
    catalog = _load_startup_catalog(store, str(options.get("catalog") or "") or None)

    if OUTLINE_ARG.lstrip("-") in options:
        print_outline(_read_text(options["outline"]), catalog, store.data)
        sys.exit(0)

    from PySide6.QtWidgets import QApplication

    from QuillPyside.widgets import QuillmarkEditor

    app = QApplication([sys.argv[0], *cli_args])
    app.setStyle("Fusion")
    app.setApplicationName(APP_NAME)
    app.setApplicationVersion(__version__)
    editor = QuillmarkEditor(settings=store.data, catalog=catalog)
    startup_file = cli_args[0] if cli_args else ""
    editor.setPlainText(_read_text(startup_file))
    editor.setWindowTitle(f"{APP_NAME} [{Path(startup_file).name or 'untitled'}]")
    editor.resize(900, 700)
    editor.show()
    sys.exit(app.exec())
