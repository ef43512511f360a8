"""
CFC Push Chatbot - Outbound message texts

WhatsApp-formatted (Portuguese) texts produced by the dialogue engine.
"""

import re
from typing import List

from app.conversation.state import ConversationLevel
from app.menus.models import MenuNode, WelcomeMessage

_TITLE_ICONS = re.compile("[📍📝🙏👨‍💼⏰💝🏠🤝🔔🎵🎯🛍️💰❌]")

NAVIGATION_TIPS = (
    "💡 *Dicas de navegação:*\n"
    "   - Digite o *número* da opção desejada\n"
    "   - Use *voltar* para voltar um nível\n"
    "   - Use *menu* para voltar ao menu principal\n"
    "   - Digite *shalom* para reiniciar"
)

FAREWELL = (
    "Atendimento encerrado. Shalom! Que Deus te abençoe! 🙏\n\n"
    "Para reiniciar, digite *shalom*."
)

ERROR = "❌ Desculpe, ocorreu um erro.\n\nDigite *shalom* para reiniciar a conversa."

CONTENT_COMING_SOON = "Informações disponíveis em breve..."


def _listing(nodes: List[MenuNode]) -> str:
    return "".join(f"{node.order}. {node.title}\n" for node in nodes)


def main_menu(welcome: WelcomeMessage, roots: List[MenuNode]) -> str:
    text = f"{welcome.title}\n\n{welcome.message}\n\n"
    if welcome.instructions:
        text += f"{welcome.instructions}\n\n"
    text += _listing(roots)
    text += f"\n{NAVIGATION_TIPS}"
    if welcome.quick_tip:
        text += f"\n\n{welcome.quick_tip}"
    return text


def greeting(welcome: WelcomeMessage, roots: List[MenuNode]) -> str:
    return "Shalom! 🕊️\n\n" + main_menu(welcome, roots)


def submenu_list(parent: MenuNode, children: List[MenuNode]) -> str:
    text = f"*{parent.title}*\n"
    if parent.description:
        text += f"{parent.description}\n\n"
    else:
        text += "\n"
    text += _listing(children)
    text += "\n💡 Digite o *número* da opção\n"
    text += "   Ou *voltar* para voltar ao menu principal"
    return text


def content(node: MenuNode, has_children: bool) -> str:
    """Terminal content of a node, with navigation hints or a farewell."""
    title = _TITLE_ICONS.sub("", node.title).strip()
    text = f"*{title}*\n\n"

    description = node.description.strip()
    body = node.content.strip()
    url = node.url.strip()

    if description:
        text += f"{node.description}\n\n"
    if body:
        text += f"{node.content}\n\n"
    if url:
        text += f"🔗 {url}\n\n"
    if not (description or body or url):
        text += f"{CONTENT_COMING_SOON}\n\n"

    if node.has_terminal_payload:
        text += "Shalom! Que Deus te abençoe! 🙏\n\nPara reiniciar, digite *shalom*."
    elif has_children:
        text += "💡 Digite *voltar* para voltar às opções\n"
        text += "   Ou *menu* para voltar ao menu principal"
    else:
        text += "💡 Digite *voltar* para voltar ao menu principal\n"
        text += "   Ou *menu* para reiniciar"
    return text


def option_unavailable(number: int, at_root: bool) -> str:
    if at_root:
        return f"❌ Opção {number} não disponível.\n\nDigite *menu* para ver as opções."
    return f"❌ Opção {number} não disponível aqui.\n\nDigite *voltar* para ver as opções novamente."


def unrecognized(level: ConversationLevel, user_message: str) -> str:
    text = f'🤖 Não entendi sua mensagem: "{user_message}"\n\n'
    if level == ConversationLevel.AT_ROOT:
        text += "Você está no *menu principal*.\n"
        text += 'Digite o *número* da opção desejada ou *"menu"* para ver as opções novamente.'
    elif level == ConversationLevel.BROWSING_SUBMENU:
        text += "Você está escolhendo uma opção.\n"
        text += 'Digite o *número* da opção ou *"voltar"* para voltar.'
    else:
        text += "Você está vendo um conteúdo.\n"
        text += 'Digite *"voltar"* para voltar às opções ou *"menu"* para ir ao menu principal.'
    text += '\n\n💡 *Dica:* Digite *"shalom"* para reiniciar a conversa.'
    return text
