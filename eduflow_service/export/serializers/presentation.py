from __future__ import annotations

import io
from collections.abc import Sequence

from pptx import Presentation
from pptx.util import Pt

from eduflow_service.export.content import SlideEntry

# Index of "Title and Content" in the default template
_TITLE_AND_CONTENT = 1


def slides_to_pptx(slides: Sequence[SlideEntry], *, title: str) -> bytes:
    """One slide per entry; bullets kept in the given order."""
    prs = Presentation()
    prs.core_properties.title = title
    layout = prs.slide_layouts[_TITLE_AND_CONTENT]

    for entry in slides:
        slide = prs.slides.add_slide(layout)
        slide.shapes.title.text = entry.title
        body = slide.placeholders[1].text_frame
        for i, bullet in enumerate(entry.bullets):
            p = body.paragraphs[0] if i == 0 else body.add_paragraph()
            p.text = bullet
            p.level = 0
            p.font.size = Pt(20)

    buf = io.BytesIO()
    prs.save(buf)
    return buf.getvalue()
