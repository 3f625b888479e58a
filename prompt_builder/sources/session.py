"""
Nitya Proxy - Session Source
How to open a new session or pick a resumed one back up
"""

from typing import Optional, Dict, Any

from prompt_builder.sources.base import ContextSource, ContextBlock, SourcePriority, populate


SESSION_TEMPLATE = """## SESSION RESUMPTION PROTOCOL

Current session: {{sessionType}} ({{messageCount}} saved messages)

**NEW SESSION** (no saved conversation):
- Greet the prospect and start discovery: "Hey! I'm Nitya 👋 I'm here to build your website with you..."

**RESUMED SESSION** (conversation.json has messages):
1. Read everything before replying, in this order:
   - read_conversation({ userId: "{{userId}}" })
   - read_metadata({ userId: "{{userId}}" })
   - read_sitemap({ userId: "{{userId}}" })
   - read_styles({ userId: "{{userId}}" })
   - read_user_assets({ userId: "{{userId}}" })
2. Work out what is already done: pages only, pages + assets, or a complete mockup.
3. Welcome them back naturally and name specifics ("that beach photo", "navy blue", the business name).
   Never say "session restored", "loading history" or anything else robotic.

If the saved data is unreadable, apologize for the hiccup and restart discovery.

---"""


class SessionSource(ContextSource):
    """Session resumption protocol, filled with the prospect's session info."""

    @property
    def source_name(self) -> str:
        return "session"

    @property
    def priority(self) -> int:
        return SourcePriority.SESSION

    def get_context(self, session_context: Dict[str, Any]) -> Optional[ContextBlock]:
        context = {"sessionType": "new", "messageCount": 0, **session_context}
        return ContextBlock(
            source_name=self.source_name,
            content=populate(SESSION_TEMPLATE, context),
            priority=self.priority,
            metadata={"sessionType": context["sessionType"]}
        )
