"""Response classification: attachment download or JSON document.

Autolab answers handout and writeup requests either with a JSON document
(``{"url": ...}`` or an error) or with the file itself, marked by a
``Content-Disposition`` header. The decision has to be made as soon as the
headers arrive, because the body is streamed straight to disk.

:func:`classify_response` is called by the transport once per response,
before the first body chunk is read.
"""

from __future__ import annotations

import re
from pathlib import PurePath
from typing import Mapping, Optional

from autolab_cli.client.state import RequestState
from autolab_cli.output import debug

_QUOTED_FILENAME = re.compile(r'filename="([^"]*)"', re.IGNORECASE)
_BARE_FILENAME = re.compile(r"filename=([^;\s\"]+)", re.IGNORECASE)


def extract_filename(disposition: str) -> Optional[str]:
    """Return the ``filename`` attribute of a ``Content-Disposition`` value.

    Both ``filename="a b.pdf"`` and ``filename=a.pdf`` are accepted. The
    result is reduced to its final path component so a server cannot direct
    the write outside the download directory.

    Returns:
        The bare file name, or ``None`` if the header carries none.
    """
    match = _QUOTED_FILENAME.search(disposition) or _BARE_FILENAME.search(disposition)
    if match is None:
        return None
    name = PurePath(match.group(1).replace("\\", "/")).name
    if name in ("", ".", ".."):
        return None
    return name


def classify_response(state: RequestState, headers: Mapping[str, str]) -> None:
    """Inspect response *headers* and prepare *state* for the body.

    Does nothing unless the state was created with a download directory.
    Otherwise a ``Content-Disposition`` header marks the response as a
    download and opens ``{download_dir}/{filename}`` for writing; the
    filename falls back to the state's suggested name.

    Args:
        state: The sink for the current request.
        headers: Response headers (case-insensitive mapping such as
            :class:`httpx.Headers`).
    """
    if not state.consider_download():
        return

    disposition = headers.get("Content-Disposition")
    if disposition is None:
        return

    debug(f"Content-Disposition: {disposition}")
    filename = extract_filename(disposition) or state.suggested_filename or "download"
    path = state.open_download(filename)
    debug(f"Opened file {path}")
