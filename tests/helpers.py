"""
In-memory package builders shared by the test suite.
"""

import io
import zipfile

from PIL import Image

W_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
R_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
RT = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"

NAMESPACES = (
    'xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main" '
    'xmlns:r="http://schemas.openxmlformats.org/officeDocument/2006/relationships" '
    'xmlns:wp="http://schemas.openxmlformats.org/drawingml/2006/wordprocessingDrawing" '
    'xmlns:a="http://schemas.openxmlformats.org/drawingml/2006/main" '
    'xmlns:pic="http://schemas.openxmlformats.org/drawingml/2006/picture" '
    'xmlns:v="urn:schemas-microsoft-com:vml" '
    'xmlns:o="urn:schemas-microsoft-com:office:office" '
    'xmlns:mc="http://schemas.openxmlformats.org/markup-compatibility/2006"'
)

DEFAULT_STYLES = f"""<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<w:styles {NAMESPACES}>
    <w:style w:type="paragraph" w:default="1" w:styleId="Normal">
        <w:name w:val="Normal"/>
    </w:style>
</w:styles>"""

CONTENT_TYPE_OVERRIDES = {
    "word/document.xml": "application/vnd.openxmlformats-officedocument.wordprocessingml.document.main+xml",
    "word/styles.xml": "application/vnd.openxmlformats-officedocument.wordprocessingml.styles+xml",
    "word/numbering.xml": "application/vnd.openxmlformats-officedocument.wordprocessingml.numbering+xml",
    "word/footnotes.xml": "application/vnd.openxmlformats-officedocument.wordprocessingml.footnotes+xml",
    "word/endnotes.xml": "application/vnd.openxmlformats-officedocument.wordprocessingml.endnotes+xml",
    "word/comments.xml": "application/vnd.openxmlformats-officedocument.wordprocessingml.comments+xml",
}


def wrap_part(root_tag: str, inner: str) -> str:
    """Wrap WML markup in a root element declaring the usual namespaces."""
    return f'<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n<{root_tag} {NAMESPACES}>{inner}</{root_tag}>'


def _rels_xml(relationships):
    entries = []
    for rel_id, rel_type, target, mode in relationships:
        mode_attr = f' TargetMode="{mode}"' if mode else ""
        entries.append(f'<Relationship Id="{rel_id}" Type="{rel_type}" Target="{target}"{mode_attr}/>')
    return (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        '<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">'
        + "".join(entries)
        + "</Relationships>"
    )


def make_docx(
    body: str = "",
    styles=DEFAULT_STYLES,
    numbering=None,
    footnotes=None,
    endnotes=None,
    comments=None,
    headers=None,
    footers=None,
    relationships=None,
    parts=None,
    document_xml=None,
) -> bytes:
    """
    Build a ``.docx`` package in memory.

    Args:
        body: Markup placed inside ``w:body``
        styles: Complete ``styles.xml`` text (``None`` omits the part)
        numbering: Markup placed inside ``w:numbering``
        footnotes / endnotes / comments: Markup placed inside the part root
        headers / footers: Relationship id -> markup placed inside ``w:hdr``/``w:ftr``
        relationships: Extra ``(id, type, target, mode)`` document relationships
        parts: Extra part name -> bytes
        document_xml: Complete ``document.xml`` text replacing ``body``
    """
    files = {}
    document_rels = []
    if styles is not None:
        files["word/styles.xml"] = styles
        document_rels.append(("rIdStyles", f"{RT}/styles", "styles.xml", None))
    if numbering is not None:
        files["word/numbering.xml"] = wrap_part("w:numbering", numbering)
        document_rels.append(("rIdNumbering", f"{RT}/numbering", "numbering.xml", None))
    for key, inner, root_tag in (
        ("footnotes", footnotes, "w:footnotes"),
        ("endnotes", endnotes, "w:endnotes"),
        ("comments", comments, "w:comments"),
    ):
        if inner is not None:
            files[f"word/{key}.xml"] = wrap_part(root_tag, inner)
            document_rels.append((f"rId{key.capitalize()}", f"{RT}/{key}", f"{key}.xml", None))
    for kind, mapping, root_tag in (("header", headers, "w:hdr"), ("footer", footers, "w:ftr")):
        for index, (rel_id, inner) in enumerate((mapping or {}).items(), start=1):
            name = f"{kind}{index}.xml"
            files[f"word/{name}"] = wrap_part(root_tag, inner)
            document_rels.append((rel_id, f"{RT}/{kind}", name, None))
    document_rels.extend(relationships or [])
    files["word/document.xml"] = document_xml or wrap_part("w:document", f"<w:body>{body}</w:body>")

    overrides = "".join(
        f'<Override PartName="/{name}" ContentType="{content_type}"/>'
        for name, content_type in CONTENT_TYPE_OVERRIDES.items()
        if name in files
    )
    content_types = (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        '<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">'
        '<Default Extension="rels" ContentType="application/vnd.openxmlformats-package.relationships+xml"/>'
        '<Default Extension="xml" ContentType="application/xml"/>'
        '<Default Extension="png" ContentType="image/png"/>'
        f"{overrides}</Types>"
    )

    output = io.BytesIO()
    with zipfile.ZipFile(output, "w", zipfile.ZIP_DEFLATED) as archive:
        archive.writestr("[Content_Types].xml", content_types)
        archive.writestr("_rels/.rels", _rels_xml([("rId1", f"{RT}/officeDocument", "word/document.xml", None)]))
        archive.writestr("word/_rels/document.xml.rels", _rels_xml(document_rels))
        for name, content in files.items():
            archive.writestr(name, content)
        for name, content in (parts or {}).items():
            archive.writestr(name, content)
    return output.getvalue()


def paragraph(text: str, ppr: str = "", rpr: str = "") -> str:
    """One paragraph with a single run."""
    ppr_xml = f"<w:pPr>{ppr}</w:pPr>" if ppr else ""
    rpr_xml = f"<w:rPr>{rpr}</w:rPr>" if rpr else ""
    return f'<w:p>{ppr_xml}<w:r>{rpr_xml}<w:t xml:space="preserve">{text}</w:t></w:r></w:p>'




def png_bytes(width: int = 4, height: int = 2) -> bytes:
    """A small solid PNG image."""
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), "red").save(buffer, format="PNG")
    return buffer.getvalue()


def drawing(rel_id: str, cx: int = 952500, cy: int = 476250, descr: str = "Logo") -> str:
    """An inline picture run referencing image relationship ``rel_id``."""
    return (
        f'<w:r><w:drawing><wp:inline><wp:extent cx="{cx}" cy="{cy}"/>'
        f'<wp:docPr id="1" name="Picture 1" descr="{descr}"/>'
        '<a:graphic><a:graphicData uri="http://schemas.openxmlformats.org/drawingml/2006/picture">'
        f'<pic:pic><pic:blipFill><a:blip r:embed="{rel_id}"/></pic:blipFill></pic:pic>'
        "</a:graphicData></a:graphic></wp:inline></w:drawing></w:r>"
    )
