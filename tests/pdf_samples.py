"""Builds small AcroForm PDFs shaped like the IRS XFA-derived forms (topmostSubform[0].Page1[0].*)."""

from pathlib import Path
from typing import Iterable, Optional, Tuple

from PyPDF2 import PdfWriter
from PyPDF2.generic import (
    ArrayObject,
    DictionaryObject,
    FloatObject,
    NameObject,
    NullObject,
    NumberObject,
    TextStringObject,
)

from backend.pdf_forms import FF_COMBO, FF_RADIO

DEFAULT_TEXT_FIELDS = ("f1_4[0]", "f1_5[0]", "f1_9[0]", "f1_10[0]")


def _rect(index: int) -> ArrayObject:
    top = 750 - index * 30
    return ArrayObject([FloatObject(50), FloatObject(top - 20), FloatObject(300), FloatObject(top)])


def _appearance(*states: str) -> DictionaryObject:
    normal = DictionaryObject({NameObject(s): NullObject() for s in states})
    return DictionaryObject({NameObject("/N"): normal})


def build_form_pdf(
    path: Path,
    text_fields: Iterable[str] = DEFAULT_TEXT_FIELDS,
    checkbox: Optional[str] = "c1_1[0]",
    radio: Optional[Tuple[str, Tuple[str, ...]]] = ("c1_2[0]", ("1", "2")),
    dropdown: Optional[str] = "f1_20[0]",
) -> Path:
    writer = PdfWriter()
    page = writer.add_blank_page(width=612, height=792)

    top = DictionaryObject({NameObject("/T"): TextStringObject("topmostSubform[0]")})
    top_ref = writer._add_object(top)
    page1 = DictionaryObject({NameObject("/T"): TextStringObject("Page1[0]"), NameObject("/Parent"): top_ref})
    page1_ref = writer._add_object(page1)
    top[NameObject("/Kids")] = ArrayObject([page1_ref])

    kids = ArrayObject()
    annots = ArrayObject()
    index = 0

    def widget(extra: dict, parent_ref) -> DictionaryObject:
        nonlocal index
        data = DictionaryObject(
            {
                NameObject("/Type"): NameObject("/Annot"),
                NameObject("/Subtype"): NameObject("/Widget"),
                NameObject("/Rect"): _rect(index),
                NameObject("/Parent"): parent_ref,
            }
        )
        data.update(extra)
        index += 1
        return data

    for name in text_fields:
        ref = writer._add_object(
            widget({NameObject("/T"): TextStringObject(name), NameObject("/FT"): NameObject("/Tx")}, page1_ref)
        )
        kids.append(ref)
        annots.append(ref)

    if checkbox:
        ref = writer._add_object(
            widget(
                {
                    NameObject("/T"): TextStringObject(checkbox),
                    NameObject("/FT"): NameObject("/Btn"),
                    NameObject("/V"): NameObject("/Off"),
                    NameObject("/AS"): NameObject("/Off"),
                    NameObject("/AP"): _appearance("/On", "/Off"),
                },
                page1_ref,
            )
        )
        kids.append(ref)
        annots.append(ref)

    if radio:
        radio_name, options = radio
        group = DictionaryObject(
            {
                NameObject("/T"): TextStringObject(radio_name),
                NameObject("/FT"): NameObject("/Btn"),
                NameObject("/Ff"): NumberObject(FF_RADIO),
                NameObject("/Parent"): page1_ref,
            }
        )
        group_ref = writer._add_object(group)
        radio_kids = ArrayObject()
        for option in options:
            ref = writer._add_object(
                widget(
                    {
                        NameObject("/AS"): NameObject("/Off"),
                        NameObject("/AP"): _appearance(f"/{option}", "/Off"),
                    },
                    group_ref,
                )
            )
            radio_kids.append(ref)
            annots.append(ref)
        group[NameObject("/Kids")] = radio_kids
        kids.append(group_ref)

    if dropdown:
        ref = writer._add_object(
            widget(
                {
                    NameObject("/T"): TextStringObject(dropdown),
                    NameObject("/FT"): NameObject("/Ch"),
                    NameObject("/Ff"): NumberObject(FF_COMBO),
                    NameObject("/Opt"): ArrayObject([TextStringObject("F-1"), TextStringObject("J-1")]),
                },
                page1_ref,
            )
        )
        kids.append(ref)
        annots.append(ref)

    page1[NameObject("/Kids")] = kids
    if annots:
        page[NameObject("/Annots")] = annots
        writer._root_object[NameObject("/AcroForm")] = DictionaryObject({NameObject("/Fields"): ArrayObject([top_ref])})

    with Path(path).open("wb") as handle:
        writer.write(handle)
    return Path(path)
