"""系统提示词加载与 prompt 拼装。

按语言(locale) 从 prompts/<locale> 目录读取 system prompt 文本，
再与历史消息、当前消息拼成发给推理服务的单个字符串。
"""

from functools import lru_cache
from pathlib import Path
from typing import Sequence


PROMPTS_DIR = Path(__file__).resolve().parent

_PERSONA_FILES = {
    "companion": "companion_system.md",
}


@lru_cache(maxsize=8)
def load_system_prompt(persona: str = "companion", locale: str = "en") -> str:
    """根据人设和语言加载系统提示词文本。"""

    fname = PROMPTS_DIR / locale / _PERSONA_FILES[persona]
    return fname.read_text(encoding="utf-8").strip()


def build_prompt(system_prompt: str, history: Sequence[str], message: str) -> str:
    """拼装最终 prompt。

    history 必须按时间正序（最早的在前）传入，这里不再排序。
    没有历史时写 "none"，保证模型看到的结构一致。
    """

    lines = [system_prompt, "", "Conversation history (oldest first):"]
    if history:
        lines.extend(f"- {item}" for item in history)
    else:
        lines.append("none")
    lines.extend(["", f"Current message: {message}", "Response:"])
    return "\n".join(lines)
