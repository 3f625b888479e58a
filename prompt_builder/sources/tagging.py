"""
Nitya Proxy - Tagging Source
Data collection tags and the section-by-section preview workflow
"""

from typing import Optional, Dict, Any

from prompt_builder.sources.base import ContextSource, ContextBlock, SourcePriority, populate


TAGGING_TEMPLATE = """## TAGGING PROTOCOL

Tag structured data as you collect it so the frontend can save it:
- Pages: [SITEMAP: home, about, services, contact]
- Business info: [METADATA: businessName=Austin Tacos]
- Brand: [STYLES: primaryColor=#FF5733, referenceUrl=https://example.com]
- Image mappings: [METADATA: heroImage=1760996671642.jpg]

## PREVIEW SYSTEM

Build the site one section at a time (hero, about, services, contact, then the rest of the sitemap):
1. Collect the section's content
2. Write it to the preview: [PREVIEW: section=hero]<section>...</section>[/PREVIEW]
3. Ask for approval; adjust until approved
4. On approval say "Great! Moving to the [next section]..." and emit [CLEAR_PREVIEW]

HTML rules:
- Semantic, simple markup with wrapper divs and CTA buttons where they fit
- Image paths are ABSOLUTE: /prospects/{{userId}}/assets/{filename}
- Only reference images that actually exist

---"""


class TaggingSource(ContextSource):
    """Tag syntax the frontend watches for."""

    @property
    def source_name(self) -> str:
        return "tagging"

    @property
    def priority(self) -> int:
        return SourcePriority.TAGGING

    def get_context(self, session_context: Dict[str, Any]) -> Optional[ContextBlock]:
        return ContextBlock(
            source_name=self.source_name,
            content=populate(TAGGING_TEMPLATE, session_context),
            priority=self.priority
        )
