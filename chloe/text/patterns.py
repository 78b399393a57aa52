"""
Compiled regular expressions shared by the text utilities and tools.

All patterns compile at import time. A broken pattern raises ``re.error``
while the module loads, so the bot refuses to start instead of silently
mis-escaping messages later.
"""

import re

# Markdown control characters that Discord renders
MARKDOWN_CHARS = frozenset("*_`~|>")

URL_PATTERN = re.compile(r"https?://[^\s<>]+")

# <@123>, <@!123> (nickname), <@&123> (role), <#123> (channel)
MENTION_PATTERN = re.compile(r"<(?:@[!&]?|#)\d+>")

# Markdown characters someone (or a previous pass) already escaped
ESCAPED_CHAR_PATTERN = re.compile(r"\\[*_`~|>]")

# Characters that make up the eyes/mouth/arms of kaomoji faces
_FACE_CHARS = (
    r"`´′‘’‛‚ωдДノヽ･ｰー〜～∀○●◯﹏‿⌒▽□ಠ⊙ロツ╯ʖ͜͡"
    r"ㅁㅂㅠㅜㅡ_\-\^><°º¬¯\\/;'*・·TtvVuUoO"
)

_EMOTICONS = [
    # ¯\_(ツ)_/¯
    r"¯\\_[（(]ツ[)）]_/¯",
    # (╯°□°）╯︵ ┻━┻
    r"[（(]╯°□°[)）]╯︵\s*┻━┻",
    r"\([⊙ಠ]_[⊙ಠ]\)",
    r"ʅ[^ʃ\s]{0,10}ʃ",
    r"[วง]\s*[（(][^)）\n]{0,10}▿[^)）\n]{0,10}[)）]\s*[วง]",
    r"ヽ[（(][^)）\n]{0,12}[)）]ノ",
    # Parenthesised faces made only of face characters: (^_^), (´・ω・`), (>_<)
    rf"[（(][ {_FACE_CHARS}]{{1,12}}[)）]",
    # Bare faces: ^_^, -_-, >_<, T_T, o.O
    r"(?<![\w\\])[\^\-oOTx>;][_.][\^\-oOTx<;](?!\w)",
    # Western emoticons standing alone: :), ;-), >:(, :|, :*
    r"(?<!\S)>?[:;=][\-o^']?[)(\]\[DPpO/\\|*3]+(?!\S)",
]

EMOTICON_PATTERN = re.compile("|".join(f"(?:{p})" for p in _EMOTICONS))

# Inline generated-image payloads that must never reach the chat verbatim
IMAGE_DATA_PATTERN = re.compile(r"data:image/[A-Za-z0-9.+\-]+;base64,[A-Za-z0-9+/=]+")

# "Name: text" at the start of a line
IMPERSONATION_PATTERN = re.compile(r"^([A-Za-z0-9_\-.]+\s*:\s*.+)$", re.MULTILINE)

# "<@123>: " prefixes used to fake a quoted speaker
FAKE_MENTION_PATTERN = re.compile(r"<@!?\d+>\s*:\s*")

# <:name:123> and <a:name:123>
CUSTOM_EMOJI_PATTERN = re.compile(r"^<a?:([A-Za-z0-9_]+):(\d+)>$")

# :name:
GUILD_EMOJI_PATTERN = re.compile(r"^:([A-Za-z0-9_]+):$")
