"""Per-request state: where the response body goes and what it turned out to be.

A :class:`RequestState` is created for one logical request and handed to
:meth:`~autolab_cli.client.transport.Transport.execute`. The transport
feeds it headers (via :func:`~autolab_cli.client.classifier.classify_response`)
and then body chunks via :meth:`RequestState.write`. Body bytes land either in
an in-memory buffer (JSON documents) or in a file under ``download_dir`` when
the headers announced an attachment.

When a request is re-issued after a token refresh, :meth:`RequestState.reset`
must be called first so that nothing from the rejected attempt leaks into
the retried one.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, BinaryIO, Optional, Union


class RequestState:
    """Mutable sink for a single request.

    Args:
        download_dir: Directory to save attachments into. When empty or
            ``None`` every response is treated as a text document.
        suggested_filename: File name used when the ``Content-Disposition``
            header does not carry one.

    Example::

        state = RequestState("/tmp/datalab", "handout")
        transport.execute(path, HTTPMethod.GET, params, state)
        if state.is_download:
            print(state.file_path)
    """

    def __init__(
        self,
        download_dir: Union[str, Path, None] = None,
        suggested_filename: str = "",
    ) -> None:
        self.download_dir: Optional[Path] = Path(download_dir) if download_dir else None
        self._default_filename = suggested_filename
        self.suggested_filename = suggested_filename
        self.is_download = False
        self.status_code = 0
        self.file_path: Optional[Path] = None
        self._buffer = bytearray()
        self._file: Optional[BinaryIO] = None

    def consider_download(self) -> bool:
        """Whether attachment responses should be written to disk."""
        return self.download_dir is not None

    # ------------------------------------------------------------------ #
    # Body sink
    # ------------------------------------------------------------------ #

    def open_download(self, filename: str) -> Path:
        """Start a download into ``download_dir / filename``.

        The file is truncated and opened in binary mode before any body
        bytes arrive.
        """
        assert self.download_dir is not None, "open_download() requires a download_dir"
        self.close()
        self.is_download = True
        self.suggested_filename = filename
        self.file_path = self.download_dir / filename
        self._file = open(self.file_path, "wb")
        return self.file_path

    def write(self, chunk: bytes) -> None:
        """Append a body chunk to the file (downloads) or the text buffer."""
        if not chunk:
            return
        if self.is_download and self._file is not None:
            self._file.write(chunk)
        else:
            self._buffer.extend(chunk)

    @property
    def content(self) -> bytes:
        """The accumulated (non-download) body."""
        return bytes(self._buffer)

    @property
    def text(self) -> str:
        return self._buffer.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Parse the accumulated body as JSON.

        Returns:
            The decoded document, or ``None`` for downloads, empty bodies,
            and bodies that are not valid JSON.
        """
        if self.is_download or not self._buffer:
            return None
        try:
            return json.loads(self.text)
        except ValueError:
            return None

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def reset(self) -> None:
        """Forget everything produced by the previous attempt.

        Clears the buffer, the download flag, and the status code, and
        removes any partially written file. ``download_dir`` and the default
        file name are kept so the retried request is classified the same way.
        """
        partial = self.file_path if self.is_download else None
        self.close()
        if partial is not None:
            partial.unlink(missing_ok=True)
        self._buffer.clear()
        self.is_download = False
        self.status_code = 0
        self.file_path = None
        self.suggested_filename = self._default_filename

    def close(self) -> None:
        """Close the download file handle, if one is open."""
        if self._file is not None:
            self._file.close()
            self._file = None
