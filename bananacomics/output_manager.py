"""
Output management for Banana Comics.

This module renders a finished story into a printable HTML document with two
panels per page, alongside the panel images and the prose text. Export is
one-way; nothing written here is read back.
"""

import base64
import binascii
import html
import io
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from PIL import Image, UnidentifiedImageError

from bananacomics.config import Config
from bananacomics.narrative import ComicPanelData, ComicScript
from bananacomics.translations import get_text

logger = logging.getLogger(__name__)

PANELS_PER_PAGE = 2


def paginate(panels: List[ComicPanelData], per_page: int = PANELS_PER_PAGE) -> List[List[ComicPanelData]]:
    """Split panels into pages of ``per_page``."""
    return [panels[i:i + per_page] for i in range(0, len(panels), per_page)]


def decode_panel_image(image_base64: str) -> Image.Image:
    """
    Decode a base64 panel payload into a PIL Image.

    Raises:
        ValueError: If the payload is not a readable image
    """
    try:
        data = base64.b64decode(image_base64, validate=True)
        image = Image.open(io.BytesIO(data))
        image.load()
        return image
    except (binascii.Error, UnidentifiedImageError, OSError) as e:
        raise ValueError(f"Invalid panel image: {e}") from e


class OutputManager:
    """Manages exported comic files and directories."""

    def __init__(self, config: Config):
        """
        Initialize output manager.

        Args:
            config: Application configuration
        """
        self.config = config
        self.output_dir = config.output_dir
        self._ensure_output_dir()

    def _ensure_output_dir(self):
        """Ensure output directory exists."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Output directory ready: {self.output_dir}")

    def create_comic_directory(self, comic_id: Optional[str] = None) -> Path:
        """
        Create a new directory for an exported comic.

        Args:
            comic_id: Optional ID for the comic, defaults to timestamp

        Returns:
            Path to created directory
        """
        if comic_id is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            comic_id = f"comic_{timestamp}"

        comic_dir = self.output_dir / comic_id
        (comic_dir / "panels").mkdir(parents=True, exist_ok=True)

        logger.info(f"Created comic directory: {comic_dir}")
        return comic_dir

    def save_comic(
        self,
        script: ComicScript,
        comic_dir: Path,
        prose: Optional[str] = None,
        language: Optional[str] = None,
    ) -> Dict[str, Path]:
        """
        Export a story to a directory.

        Args:
            script: Story to export
            comic_dir: Directory to save to
            prose: Optional full-story text
            language: Language for page labels, defaults to configuration

        Returns:
            Dictionary of saved file paths
        """
        language = language or self.config.language
        saved_files = {}

        # Save panel images, skipping unillustrated or unreadable ones
        panels_dir = comic_dir / "panels"
        panels_dir.mkdir(parents=True, exist_ok=True)
        for panel in script.panels:
            if not panel.has_image:
                continue
            try:
                image = decode_panel_image(panel.image_base64)
            except ValueError as e:
                logger.warning(f"Skipping image for panel {panel.panel_number}: {e}")
                continue
            panel_path = panels_dir / f"panel_{panel.panel_number:02d}.png"
            image.save(panel_path, format="PNG")
            saved_files[f"panel_{panel.panel_number}"] = panel_path

        if prose:
            story_path = comic_dir / "story.md"
            story_path.write_text(f"# {script.title}\n\n{prose}\n", encoding="utf-8")
            saved_files["story"] = story_path

        html_path = comic_dir / "index.html"
        html_path.write_text(self.render_print_html(script, language), encoding="utf-8")
        saved_files["html"] = html_path

        logger.info(f"Saved comic with {len(saved_files)} files to {comic_dir}")
        return saved_files

    def render_print_html(self, script: ComicScript, language: Optional[str] = None) -> str:
        """
        Render the printable comic document.

        Args:
            script: Story to render
            language: Language for page labels

        Returns:
            HTML document
        """
        language = language or self.config.language
        title = html.escape(script.title or "Comic")
        page_label = get_text(language, "page")

        pages_html = ""
        for page_number, page in enumerate(paginate(script.panels), start=1):
            panels_html = "".join(self._render_panel(p, language) for p in page)
            pages_html += f"""
    <section class="page">
        <div class="grid">{panels_html}
        </div>
        <div class="page-number">{page_label} {page_number}</div>
    </section>
"""

        return f"""<!DOCTYPE html>
<html lang="{html.escape(language)}">
<head>
    <meta charset="UTF-8">
    <title>{title}</title>
    <link href="https://fonts.googleapis.com/css2?family=Bangers&family=Inter:wght@400;700&display=swap" rel="stylesheet">
    <style>
        body {{
            font-family: 'Inter', sans-serif;
            padding: 40px;
            -webkit-print-color-adjust: exact;
            print-color-adjust: exact;
            background: white;
        }}
        h1 {{
            font-family: 'Bangers', cursive;
            text-align: center;
            font-size: 40px;
            margin-bottom: 30px;
            letter-spacing: 2px;
            text-transform: uppercase;
        }}
        .page {{
            page-break-after: always;
            break-after: page;
        }}
        .grid {{
            display: grid;
            grid-template-columns: 1fr 1fr;
            gap: 20px;
        }}
        .panel {{
            border: 3px solid #000;
            position: relative;
            break-inside: avoid;
            page-break-inside: avoid;
            display: flex;
            flex-direction: column;
        }}
        .badge {{
            position: absolute;
            top: 0;
            left: 0;
            background: #000;
            color: #facc15;
            font-family: 'Bangers', cursive;
            padding: 4px 10px;
        }}
        .caption {{
            background: #fef08a;
            border-bottom: 3px solid #000;
            padding: 10px 10px 10px 48px;
            font-size: 13px;
            font-weight: 700;
        }}
        .panel img, .placeholder {{
            width: 100%;
            aspect-ratio: 1 / 1;
            object-fit: cover;
            display: block;
        }}
        .placeholder {{
            background: #e2e8f0;
            display: flex;
            align-items: center;
            justify-content: center;
            color: #64748b;
        }}
        .bubble {{
            margin: 10px;
            padding: 10px 14px;
            border: 2px solid #000;
            border-radius: 16px;
            font-size: 14px;
        }}
        .page-number {{
            text-align: center;
            margin-top: 16px;
            font-weight: 700;
        }}
    </style>
</head>
<body>
    <h1>{title}</h1>
{pages_html}
</body>
</html>
"""

    def _render_panel(self, panel: ComicPanelData, language: str) -> str:
        if panel.has_image:
            image_html = (
                f'<img src="data:image/png;base64,{panel.image_base64}" '
                f'alt="Panel {panel.panel_number}">'
            )
        else:
            image_html = f'<div class="placeholder">{get_text(language, "drawing")}</div>'

        caption_html = ""
        if panel.narrative_caption:
            caption_html = f'<div class="caption">{html.escape(panel.narrative_caption)}</div>'

        bubble_html = ""
        if panel.dialogue:
            bubble_html = f'<div class="bubble">{html.escape(panel.dialogue)}</div>'

        return f"""
            <div class="panel">
                <div class="badge">#{panel.panel_number}</div>
                {caption_html}
                {image_html}
                {bubble_html}
            </div>"""
