"""AcroForm helpers for government PDF forms (list fields, fill, serialize)."""

from __future__ import annotations

import io
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from PyPDF2 import PdfReader, PdfWriter
from PyPDF2.generic import ArrayObject, BooleanObject, DictionaryObject, NameObject, TextStringObject

logger = logging.getLogger(__name__)

FieldValue = Union[str, bool, List[str], None]

# Field flag bits (PDF 32000-1, 12.7.4)
FF_RADIO = 1 << 15
FF_PUSHBUTTON = 1 << 16
FF_COMBO = 1 << 17

OFF_STATE = "/Off"
DEFAULT_ON_STATE = "/Yes"


@dataclass
class PdfFieldDescriptor:
    name: str
    type: str
    value: FieldValue = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_pdf_from_disk(path: Union[str, Path]) -> PdfReader:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"PDF form not found at {p}")
    return PdfReader(str(p))


def _inherited(field: Mapping[str, Any], key: str) -> Any:
    node: Optional[Mapping[str, Any]] = field
    while node is not None:
        if key in node:
            return node[key]
        parent = node.get("/Parent")
        node = parent.get_object() if parent is not None else None
    return None


def _field_kind(field: Mapping[str, Any]) -> str:
    field_type = _inherited(field, "/FT")
    flags = int(_inherited(field, "/Ff") or 0)
    if field_type == "/Tx":
        return "text"
    if field_type == "/Btn":
        if flags & FF_PUSHBUTTON:
            return "unknown"
        return "radio" if flags & FF_RADIO else "checkbox"
    if field_type == "/Ch":
        return "dropdown" if flags & FF_COMBO else "optionlist"
    return "unknown"


def _qualified_name(field: Mapping[str, Any]) -> str:
    parts: List[str] = []
    node: Optional[Mapping[str, Any]] = field
    while node is not None:
        partial = node.get("/T")
        if partial is not None:
            parts.append(str(partial))
        parent = node.get("/Parent")
        node = parent.get_object() if parent is not None else None
    return ".".join(reversed(parts))


def _state_name(value: Any) -> str:
    return str(value).lstrip("/")


def _describe_value(kind: str, raw: Any) -> FieldValue:
    if kind == "checkbox":
        return raw is not None and str(raw) != OFF_STATE
    if raw is None:
        return None
    if kind in {"radio", "dropdown"}:
        if isinstance(raw, list):
            return str(raw[0]) if len(raw) == 1 else [str(v) for v in raw]
        return None if str(raw) == OFF_STATE else _state_name(raw)
    if kind == "optionlist":
        return [str(v) for v in raw] if isinstance(raw, list) else [str(raw)]
    return str(raw)


def _iter_terminal_fields(nodes: Any) -> Iterator[DictionaryObject]:
    for ref in nodes or []:
        node = ref.get_object()
        if "/T" not in node:
            continue
        kids = [k.get_object() for k in node.get("/Kids", ArrayObject()).get_object()]
        named_kids = [k for k in kids if "/T" in k]
        if named_kids:
            yield from _iter_terminal_fields(named_kids)
        else:
            yield node


def list_acroform_fields(reader: PdfReader) -> List[PdfFieldDescriptor]:
    """Enumerate fillable fields with their fully-qualified name, type and current value."""
    acro_form = reader.trailer["/Root"].get("/AcroForm")
    if acro_form is None:
        return []
    fields = acro_form.get_object().get("/Fields")
    descriptors: List[PdfFieldDescriptor] = []
    for field in _iter_terminal_fields(fields.get_object() if fields is not None else []):
        kind = _field_kind(field)
        value = field.get("/V")
        descriptors.append(
            PdfFieldDescriptor(
                name=_qualified_name(field),
                type=kind,
                value=_describe_value(kind, value.get_object() if value is not None else None),
            )
        )
    return descriptors


def _iter_widgets(reader: PdfReader) -> Iterator[Tuple[DictionaryObject, DictionaryObject]]:
    """Yield (widget annotation, owning field) pairs across all pages."""
    for page in reader.pages:
        annots = page.get("/Annots")
        if not annots:
            continue
        for ref in annots.get_object():
            annot = ref.get_object()
            if annot.get("/Subtype") != "/Widget":
                continue
            if "/T" in annot:
                yield annot, annot
            elif "/Parent" in annot:
                yield annot, annot["/Parent"].get_object()


def _on_state(widget: Mapping[str, Any]) -> str:
    appearances = widget.get("/AP")
    normal = appearances.get_object().get("/N") if appearances is not None else None
    if normal is not None:
        for state in normal.get_object().keys():
            if state != OFF_STATE:
                return str(state)
    return DEFAULT_ON_STATE


def _appearance_states(widget: Mapping[str, Any]) -> List[str]:
    appearances = widget.get("/AP")
    normal = appearances.get_object().get("/N") if appearances is not None else None
    return [str(k) for k in normal.get_object().keys()] if normal is not None else []


def _set_value(kind: str, widget: DictionaryObject, field: DictionaryObject, raw: Any) -> None:
    if kind == "text":
        field[NameObject("/V")] = TextStringObject("" if raw is None else str(raw))
    elif kind == "checkbox":
        state = _on_state(widget) if raw else OFF_STATE
        field[NameObject("/V")] = NameObject(state)
        widget[NameObject("/AS")] = NameObject(state)
    elif kind == "radio":
        if not isinstance(raw, str):
            return
        wanted = f"/{raw.lstrip('/')}"
        if wanted in _appearance_states(widget):
            field[NameObject("/V")] = NameObject(wanted)
            widget[NameObject("/AS")] = NameObject(wanted)
        else:
            widget[NameObject("/AS")] = NameObject(OFF_STATE)
    elif kind == "dropdown":
        if isinstance(raw, str):
            field[NameObject("/V")] = TextStringObject(raw)
    elif kind == "optionlist":
        if isinstance(raw, (list, tuple)):
            field[NameObject("/V")] = ArrayObject([TextStringObject(str(v)) for v in raw])
        elif isinstance(raw, str):
            field[NameObject("/V")] = TextStringObject(raw)


def fill_pdf_fields(reader: PdfReader, values: Mapping[str, Any]) -> bytes:
    """
    Fill a PDF form from a mapping of fully-qualified field name -> value.
    - text fields: any value, rendered with str()
    - checkbox: truthiness
    - radio / dropdown: string (option name)
    - option list: string or list of strings
    Unknown field names are ignored.
    """
    filled = 0
    for widget, field in _iter_widgets(reader):
        name = _qualified_name(field)
        if name not in values:
            continue
        kind = _field_kind(field)
        try:
            _set_value(kind, widget, field, values[name])
            filled += 1
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Could not set PDF field %s (%s): %s", name, kind, exc)

    writer = PdfWriter()
    for page in reader.pages:
        writer.add_page(page)
    acro_form = reader.trailer["/Root"].get("/AcroForm")
    if acro_form is not None:
        acro_form = acro_form.get_object()
        acro_form[NameObject("/NeedAppearances")] = BooleanObject(True)
        writer._root_object[NameObject("/AcroForm")] = acro_form

    logger.info("Filled %d PDF widgets from %d supplied values", filled, len(values))
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()
