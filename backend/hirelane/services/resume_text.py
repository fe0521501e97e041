import logging
from io import BytesIO

logger = logging.getLogger(__name__)

LEGACY_DOC_PLACEHOLDER = "Legacy .doc format detected. Automated extraction limited."


def file_extension(filename: str | None) -> str:
    """Lowercase extension without the dot ('' when there is none)."""
    name = filename or ""
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[1].lower()


def _pdf_text(data: bytes) -> str:
    from pypdf import PdfReader

    reader = PdfReader(BytesIO(data))
    return "\n".join((page.extract_text() or "") for page in reader.pages)


def _docx_text(data: bytes) -> str:
    import docx

    d = docx.Document(BytesIO(data))
    return "\n".join(p.text for p in d.paragraphs)


def extract_resume_text(data: bytes, filename: str | None) -> str:
    """
    Best-effort plain text from an uploaded resume, dispatched on extension.
    - pdf: pypdf
    - docx: python-docx
    - doc: fixed placeholder (binary Word format is not parsed)
    - txt: UTF-8 decode
    Anything else, or any extractor failure, yields "".
    """
    ext = file_extension(filename)
    try:
        if ext == "pdf":
            return _pdf_text(data)
        if ext == "docx":
            return _docx_text(data)
        if ext == "doc":
            return LEGACY_DOC_PLACEHOLDER
        if ext == "txt":
            return data.decode("utf-8", errors="replace")
    except Exception as e:
        logger.warning("Resume text extraction failed for %s: %s", filename, e)
        return ""
    return ""
