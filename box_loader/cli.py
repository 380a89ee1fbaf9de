"""
Command line interface for box-loader.

Loads Box files or a folder and prints a summary table plus content
previews using Rich.
"""

import argparse
import asyncio
import logging
import sys

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from box_loader import configure_logging
from box_loader.config import load_config
from box_loader.exceptions import BoxLoaderError
from box_loader.extensions import format_file_size
from box_loader.loader import BoxLoader
from box_loader.types import Document

COLORS = {
    "primary": "#7AA2F7",
    "success": "#9ECE6A",
    "error": "#F7768E",
    "muted": "#565F89",
}


def build_table(documents: list[Document]) -> Table:
  """Summary table with one row per Document."""
  table = Table(title=f"{len(documents)} documents", border_style=COLORS["muted"])
  table.add_column("File ID", style=COLORS["primary"])
  table.add_column("Name")
  table.add_column("Type")
  table.add_column("Size", justify="right")
  table.add_column("Chars", justify="right")
  for doc in documents:
    meta = doc.metadata
    table.add_row(
        meta["file_id"],
        Text(meta["file_name"]),
        meta["file_type"] or "-",
        format_file_size(meta["file_size"]),
        str(len(doc.page_content)),
    )
  return table


def render_preview(console: Console, doc: Document, preview: int) -> None:
  text = doc.page_content[:preview]
  if len(doc.page_content) > preview:
    text += " ..."
  console.print(
      Panel(
          Text(text or "(empty)"),
          title=Text(doc.metadata["file_name"]),
          subtitle=doc.metadata["box_url"],
          border_style=COLORS["muted"],
      )
  )


async def run(args: argparse.Namespace, console: Console) -> int:
  config = load_config(args.config)
  loader = BoxLoader(
      file_ids=args.file_id,
      folder_id=args.folder_id,
      recursive=args.recursive,
      character_limit=args.limit,
      config=config,
  )

  if args.lazy:
    documents = []
    async for doc in loader.lazy_load():
      documents.append(doc)
      if args.preview:
        render_preview(console, doc, args.preview)
  else:
    with console.status("Loading documents from Box..."):
      documents = await loader.load()
    if args.preview:
      for doc in documents:
        render_preview(console, doc, args.preview)

  console.print(build_table(documents))
  return 0


def main(argv: list[str] | None = None) -> int:
  """Main entry point for the CLI."""
  parser = argparse.ArgumentParser(
      description="Load text from Box files and folders",
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  # Specific files
  box-loader --file-id 12345 --file-id 67890

  # Whole folder tree, first 500 characters shown per file
  box-loader --folder-id root --recursive --preview 500

Credentials are read from BOX_DEVELOPER_TOKEN, BOX_JWT_PATH (with an
optional BOX_USER_ID), or BOX_CLIENT_ID / BOX_CLIENT_SECRET with
BOX_ENTERPRISE_ID or BOX_USER_ID.
        """,
  )
  parser.add_argument(
      "--file-id",
      "-f",
      action="append",
      help="Box file id to load (repeatable)",
  )
  parser.add_argument(
      "--folder-id",
      "-d",
      type=str,
      help="Box folder id to load (\"root\" or 0 for the root folder)",
  )
  parser.add_argument(
      "--recursive",
      "-r",
      action="store_true",
      help="Descend into subfolders",
  )
  parser.add_argument(
      "--limit",
      "-l",
      type=int,
      help="Truncate each document to this many characters",
  )
  parser.add_argument(
      "--config",
      "-c",
      type=str,
      help="YAML file with loader settings",
  )
  parser.add_argument(
      "--lazy",
      action="store_true",
      help="Stream documents as they are fetched",
  )
  parser.add_argument(
      "--preview",
      "-p",
      type=int,
      default=0,
      help="Show the first N characters of each document",
  )
  parser.add_argument(
      "--verbose",
      "-v",
      action="store_true",
      help="Enable INFO logging",
  )
  args = parser.parse_args(argv)

  if args.verbose:
    configure_logging(level=logging.INFO)

  console = Console()
  try:
    return asyncio.run(run(args, console))
  except BoxLoaderError as e:
    console.print(Text(f"Error: {e}", style=COLORS["error"]))
    console.print(e.get_troubleshooting_message(), style=COLORS["muted"])
    return 2


if __name__ == "__main__":
  sys.exit(main())
