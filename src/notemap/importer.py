"""Import notes and mind maps from files."""
import json
from pathlib import Path

from notemap.models import MindMapNode, Subject
from notemap.subjects import create_subject

# Keyword mapping for auto-categorization
CONTEXT_KEYWORDS = {
    "course": ["lecture", "course", "module", "lesson", "syllabus", "exam", "homework", "professor", "semester", "assignment"],
    "book": ["chapter", "author", "novel", "book", "page", "edition", "preface", "protagonist"],
    "article": ["article", "blog", "post", "published", "journal", "newsletter", "paper", "abstract", "http"],
}


def read_file_content(file_path: str) -> str:
    """Return a file's text as it should appear in a subject's notes.

    Structured files (JSON, YAML) are validated and re-serialized as readable
    block text rather than stored as Python reprs.
    """
    path = Path(file_path)
    suffix = path.suffix.lower()

    if suffix in (".txt", ".md"):
        return path.read_text()
    elif suffix == ".json":
        data = json.loads(path.read_text())
        return data if isinstance(data, str) else json.dumps(data, indent=2, ensure_ascii=False)
    elif suffix in (".yaml", ".yml"):
        import yaml
        data = yaml.safe_load(path.read_text())
        if data is None or isinstance(data, str):
            return data or ""
        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True, default_flow_style=False)
    elif suffix == ".pdf":
        from PyPDF2 import PdfReader
        reader = PdfReader(file_path)
        return "\n".join(page.extract_text() or "" for page in reader.pages)
    elif suffix == ".docx":
        from docx import Document
        doc = Document(file_path)
        return "\n".join(p.text for p in doc.paragraphs)
    elif suffix in (".html", ".htm"):
        from bs4 import BeautifulSoup
        html = path.read_text()
        return BeautifulSoup(html, "html.parser").get_text("\n", strip=True)
    else:
        # Try reading as plain text
        return path.read_text()


def categorize_context(text: str) -> str:
    """Guess the subject context by keyword matching. Falls back to 'idea'."""
    text_lower = text.lower()
    scores = {
        context: sum(1 for kw in keywords if kw in text_lower)
        for context, keywords in CONTEXT_KEYWORDS.items()
    }
    best = max(scores, key=scores.get)
    return best if scores[best] > 0 else "idea"


def read_mind_map(file_path: str) -> MindMapNode:
    """Load a mind map tree from a .json or .yaml file."""
    path = Path(file_path)
    if path.suffix.lower() in (".yaml", ".yml"):
        import yaml
        data = yaml.safe_load(path.read_text())
    else:
        data = json.loads(path.read_text())
    return MindMapNode.from_dict(data)


def import_notes(
    db_path: str,
    file_path: str,
    title: str | None = None,
    context: str | None = None,
    mind_map_path: str | None = None,
) -> Subject:
    """Create a subject from a notes file. Title defaults to the file name, context is auto-detected."""
    content = read_file_content(file_path)
    if context is None:
        context = categorize_context(content)
    mind_map = read_mind_map(mind_map_path) if mind_map_path else None
    return create_subject(
        db_path,
        title=title or Path(file_path).stem,
        raw_notes=content,
        context=context,
        mind_map=mind_map,
    )
