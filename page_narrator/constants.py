"""All magic numbers and configuration constants."""

MAX_PARAGRAPH_WORDS = 150           # words, split paragraphs longer than this
MIN_OTHER_TEXT_CHARS = 10           # chars, unknown node types shorter than this are dropped
LONG_TEXT_CHARS = 50                # chars, "other" blocks longer than this get sentence breaks
CODE_BLOCK_TEXT = "Code block"      # spoken in place of code content

HEADING_1_PAUSE = "0.8s"            # pause after a level-1 heading
HEADING_2_PAUSE = "0.6s"            # pause after a level-2 heading
HEADING_PAUSE = "0.5s"              # pause after level-3+ headings
BLOCKQUOTE_PAUSE = "0.4s"           # pause before and after a quote
BLOCKQUOTE_PITCH = "-5%"            # quotes are read slightly lower
LIST_ITEM_LEAD_PAUSE = "0.15s"      # pause before a list item
LIST_ITEM_PAUSE = "0.3s"            # pause after a list item
PARAGRAPH_PAUSE = "0.5s"            # pause after a paragraph
CODE_BLOCK_PAUSE = "0.3s"           # pause around the code block announcement
OTHER_LONG_PAUSE = "0.4s"           # pause after long unknown blocks
OTHER_SHORT_PAUSE = "0.3s"          # pause after short unknown blocks

SENTENCE_BREAK = "0.3s"             # after . ! ?
CLAUSE_BREAK = "0.15s"              # after , ; :
DASH_BREAK = "0.2s"                 # around em dashes
ELLIPSIS_BREAK = "0.4s"             # after ...

# Node types that can carry an audioBlock attribute
ANNOTATED_NODE_TYPES = ("paragraph", "heading", "blockquote", "listItem", "codeBlock")
AUDIO_BLOCK_ATTR = "audioBlock"             # document node attribute
AUDIO_BLOCK_DATA_ATTR = "data-audio-block"  # rendered element attribute
HIGHLIGHT_CLASS = "audio-highlighted"       # class on the currently playing element

SETTINGS_DIR = ".page_narrator"        # where settings.json lives, relative to the working directory
SETTINGS_FILENAME = "settings.json"
AUDIO_BLOCKS_ENABLED_KEY = "audio_blocks_enabled"
WORDS_PER_MINUTE = 150              # speaking rate used for duration estimates
VERSION = "0.1.0"
