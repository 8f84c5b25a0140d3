"""Chat page UI"""
import gradio as gr

from medassist.core.config import BASE_URL
from medassist.services.quick_actions import list_quick_actions
from medassist.ui.api_client import ChatApiClient
from medassist.ui.formatting import TYPING_PLACEHOLDER, character_count, to_chatbot_messages
from medassist.ui.session import ChatSession, SessionStatus

WELCOME = (
    "👋 Hello! I'm Dr. MedAssist, your AI healthcare companion. I can help you with general health "
    "questions, symptom information, wellness advice, and medication guidance.\n\n"
    "⚠️ **Important:** I provide general information only and cannot replace professional medical "
    "advice. For emergencies, please call your local emergency services immediately.\n\n"
    "How can I assist you today?"
)

DISCLAIMER = (
    "**Medical Disclaimer.** This AI assistant provides general health information for educational "
    "purposes only. It is not a substitute for professional medical advice, diagnosis, or treatment. "
    "Always consult with qualified healthcare providers for medical concerns. In case of emergency, "
    "contact emergency services immediately."
)


def _render(session, pending_text=None, typing=False):
    messages = [{"role": "assistant", "content": WELCOME}]
    if session is None:
        return messages
    messages += to_chatbot_messages(session.messages)
    if pending_text:
        messages.append({"role": "user", "content": pending_text})
    if typing or session.typing:
        messages.append({"role": "assistant", "content": TYPING_PLACEHOLDER})
    return messages


def _status(session):
    if session is None or not session.error:
        return "", gr.update(visible=False)
    return f"⚠️ {session.error}", gr.update(visible=True)


def _teardown(session):
    if session is not None:
        session.close()


async def on_send(user_text, session):
    """Handle sending a message"""
    if session is None:
        yield session, _render(None), user_text, gr.update(), "", gr.update(visible=False)
        return
    if session.status is not SessionStatus.READY:
        # manual retry of a failed start
        await session.initialize()
        if session.status is not SessionStatus.READY:
            yield (session, _render(session), user_text, gr.update()) + _status(session)
            return
    if not (user_text or "").strip() or session.sending:
        yield (session, _render(session), user_text, gr.update()) + _status(session)
        return

    session.draft = user_text
    yield (session, _render(session, pending_text=user_text.strip(), typing=True),
           gr.update(interactive=False), gr.update(interactive=False), "", gr.update(visible=False))

    await session.send()
    yield (session, _render(session), gr.update(value=session.draft, interactive=True),
           gr.update(interactive=True)) + _status(session)


def make_quick_handler(tag):
    async def on_quick_action(session):
        if session is None:
            yield session, _render(None), "", gr.update(visible=False)
            return
        if session.quick_action_pending:
            yield (session, _render(session)) + _status(session)
            return
        yield session, _render(session, typing=True), "", gr.update(visible=False)

        await session.quick_action(tag)
        yield (session, _render(session)) + _status(session)
    return on_quick_action


def dismiss(session):
    if session is not None:
        session.dismiss_error()
    return (session,) + _status(session)


def create_chat_page(base_url=BASE_URL, transport=None):
    """Create the chat page interface"""
    with gr.Blocks(title="MedAssist AI") as chat_page:
        gr.Markdown(
            "## ❤️ MedAssist AI\n"
            "Your intelligent healthcare companion. Ask questions about symptoms, medications, "
            "wellness tips, and general health information."
        )

        session_state = gr.State(None, delete_callback=_teardown)

        gr.Markdown("**Quick Questions:**")
        with gr.Row():
            quick_buttons = [
                (gr.Button(f"{a['icon']} {a['label']}", size="sm"), a["id"])
                for a in list_quick_actions()
            ]

        chatbot = gr.Chatbot(type="messages", height=520, label=None, value=_render(None))

        with gr.Row():
            txt = gr.Textbox(
                placeholder="Ask me about symptoms, medications, wellness tips, or general health questions...",
                scale=5,
                container=False,
                show_label=False,
                lines=1,
                max_lines=5,
            )
            send_btn = gr.Button("Send", scale=1, variant="primary")
        counter = gr.Markdown(character_count(""))

        with gr.Row():
            status = gr.Markdown()
            dismiss_btn = gr.Button("Dismiss", size="sm", visible=False)

        gr.Markdown(DISCLAIMER)

        async def load_session():
            """Start a conversation on page load"""
            session = ChatSession(ChatApiClient(base_url=base_url, transport=transport))
            await session.initialize()
            return (session, _render(session)) + _status(session)

        chat_page.load(load_session, inputs=None, outputs=[session_state, chatbot, status, dismiss_btn])

        send_outputs = [session_state, chatbot, txt, send_btn, status, dismiss_btn]
        txt.submit(on_send, inputs=[txt, session_state], outputs=send_outputs)
        send_btn.click(on_send, inputs=[txt, session_state], outputs=send_outputs)

        txt.change(character_count, inputs=[txt], outputs=[counter], show_progress="hidden")

        for button, tag in quick_buttons:
            button.click(make_quick_handler(tag), inputs=[session_state],
                         outputs=[session_state, chatbot, status, dismiss_btn])

        dismiss_btn.click(dismiss, inputs=[session_state], outputs=[session_state, status, dismiss_btn])

    return chat_page
