"""System clipboard access through platform command-line tools."""

import subprocess
import sys
from typing import List, Optional

from xeet.utils.logging import get_logger

from .models import ClipboardEmpty, ClipboardImage, ClipboardPayload, ClipboardText

logger = get_logger(__name__)

CLIPBOARD_TIMEOUT = 5

# Candidate commands per platform, tried in order
IMAGE_COMMANDS = {
    "darwin": [["pngpaste", "-"]],
    "linux": [
        ["wl-paste", "--no-newline", "--type", "image/png"],
        ["xclip", "-selection", "clipboard", "-t", "image/png", "-o"],
    ],
    "win32": [[
        "powershell", "-NoProfile", "-Command",
        "Add-Type -AssemblyName System.Windows.Forms;"
        "$img = [System.Windows.Forms.Clipboard]::GetImage();"
        "if ($img -ne $null) { $ms = New-Object System.IO.MemoryStream;"
        "$img.Save($ms, [System.Drawing.Imaging.ImageFormat]::Png);"
        "[Console]::OpenStandardOutput().Write($ms.ToArray(), 0, $ms.Length) }",
    ]],
}

TEXT_COMMANDS = {
    "darwin": [["pbpaste"]],
    "linux": [
        ["wl-paste", "--no-newline"],
        ["xclip", "-selection", "clipboard", "-o"],
        ["xsel", "--clipboard", "--output"],
    ],
    "win32": [["powershell", "-NoProfile", "-Command", "Get-Clipboard -Raw"]],
}

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


class Clipboard:
    """Reads images and text from the system clipboard.

    Every read returns ``None`` when nothing usable is available, including
    when no clipboard tool is installed.
    """

    def __init__(self, platform: Optional[str] = None):
        self.platform = platform or sys.platform

    def _run(self, command: List[str]) -> Optional[bytes]:
        try:
            result = subprocess.run(command, capture_output=True, timeout=CLIPBOARD_TIMEOUT)
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            logger.debug(f"Clipboard command {command[0]} unavailable: {e}")
            return None

        if result.returncode != 0 or not result.stdout:
            return None

        return result.stdout

    def read_image(self) -> Optional[bytes]:
        for command in IMAGE_COMMANDS.get(self.platform, []):
            data = self._run(command)
            if data and data.startswith(PNG_SIGNATURE):
                logger.debug(f"Read {len(data)} byte image from clipboard")
                return data
        return None

    def read_text(self) -> Optional[str]:
        for command in TEXT_COMMANDS.get(self.platform, []):
            data = self._run(command)
            if data:
                text = data.decode("utf-8", errors="replace").replace("\r\n", "\n")
                if text:
                    return text
        return None

    def read(self) -> ClipboardPayload:
        """Read the clipboard, preferring an image over text."""
        image = self.read_image()
        if image:
            return ClipboardImage(image)

        text = self.read_text()
        if text:
            return ClipboardText(text)

        return ClipboardEmpty()
