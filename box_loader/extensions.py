"""
File type helpers.

Extension tables decide two things before any network call: whether a file
is skipped as image/video media, and which representation kind to request.
Extensions are stored lowercase without the leading dot, matching the
``extension`` field Box returns.
"""

from box_loader.types import RepresentationKind

# Formats Box renders as markdown; everything else asks for extracted text
MARKDOWN_EXTENSIONS = frozenset({
    "docx",
    "pptx",
    "xls",
    "xlsx",
    "xlsm",
    "gdoc",
    "gslide",
    "gslides",
    "gsheet",
    "pdf",
})

IMAGE_EXTENSIONS = frozenset({
    # Common web formats
    "gif", "jpeg", "jpg", "png", "svg",
    # Professional formats
    "bmp", "eps", "tif", "tiff", "tga",
    # RAW camera formats
    "arw", "cr2", "dng", "nef",
    "exr",
    "heic",
    # Medical imaging
    "dcm", "dicm", "dicom", "svs",
    # Adobe formats
    "indd", "indml", "indt", "inx",
})

VIDEO_EXTENSIONS = frozenset({
    "mp4", "m4v", "mov", "avi", "mkv", "webm", "wmv", "flv", "mpeg", "mpg",
    "m2ts", "mts", "3gp",
})

TEXT_EXTENSIONS = frozenset({
    # Documents
    "doc", "docx", "gdoc", "gsheet", "numbers", "ods", "odt", "pages",
    "pdf", "rtf", "wpd",
    # Spreadsheets
    "xls", "xlsm", "xlsx", "xlsb",
    # Presentations
    "gslide", "gslides", "key", "odp", "ppt", "pptx",
    # Code and markup
    "as", "as3", "asm", "bat", "c", "cc", "cmake", "cpp", "cs", "css", "csv",
    "cxx", "diff", "erb", "groovy", "h", "haml", "hh", "htm", "html", "java",
    "js", "json", "less", "log", "m", "make", "md", "ml", "mm", "msg", "php",
    "pl", "properties", "py", "rb", "rst", "sass", "scala", "scm", "script",
    "sh", "sml", "sql", "txt", "vi", "vim", "webdoc", "xhtml", "xml", "xsd",
    "xsl", "yaml", "yml",
    "ts", "scss", "toml", "ini", "cfg", "conf",
    "boxnote",
})

_SIZE_UNITS = ["Bytes", "KB", "MB", "GB", "TB"]


def file_extension(name: str) -> str:
  """Lowercase extension of ``name`` without the dot, or "" if none."""
  if "." not in name:
    return ""
  return name.rsplit(".", 1)[-1].lower()


def _normalize(extension: str) -> str:
  return extension.lower().lstrip(".")


def is_image_file(filename: str) -> bool:
  return file_extension(filename) in IMAGE_EXTENSIONS


def is_video_file(filename: str) -> bool:
  return file_extension(filename) in VIDEO_EXTENSIONS


def is_text_file(filename: str) -> bool:
  """True when Box can produce a text representation for this file name."""
  return file_extension(filename) in TEXT_EXTENSIONS


def is_media_file(filename: str) -> bool:
  return is_image_file(filename) or is_video_file(filename)


def is_media_extension(extension: str) -> bool:
  """True for image or video extensions (with or without leading dot)."""
  ext = _normalize(extension)
  return ext in IMAGE_EXTENSIONS or ext in VIDEO_EXTENSIONS


def representation_kind_for(extension: str) -> RepresentationKind:
  """Pick the representation kind to request for an extension."""
  if _normalize(extension) in MARKDOWN_EXTENSIONS:
    return RepresentationKind.MARKDOWN
  return RepresentationKind.EXTRACTED_TEXT


def format_file_size(size_bytes: int) -> str:
  """
  Format a byte count for display.

  Example:
      format_file_size(0)        # "0 Bytes"
      format_file_size(1536)     # "1.5 KB"
      format_file_size(1048576)  # "1 MB"
  """
  if size_bytes <= 0:
    return "0 Bytes"
  value = float(size_bytes)
  unit = 0
  while value >= 1024 and unit < len(_SIZE_UNITS) - 1:
    value /= 1024
    unit += 1
  text = f"{value:.2f}".rstrip("0").rstrip(".")
  return f"{text} {_SIZE_UNITS[unit]}"


def sanitize_folder_id(folder_id: str | int) -> str:
  """Normalize a folder id; ``"root"`` and ``0`` both mean the root folder."""
  value = str(folder_id).strip()
  if value.lower() == "root":
    return "0"
  return value
