import logging

import streamlit as st

from backend.errors import UnsupportedInput
from backend.utils import export_filename
from config.settings import settings, setup_logging
from frontend import session
from frontend.api_client import call_generate, call_remove_background
from frontend.capture import capture_video_frame, is_video, payload_from_upload, video_duration
from frontend.composer import resolve_prompt
from frontend.media import ASPECT_RATIOS, MEDIA_OPTIONS

setup_logging()
logger = logging.getLogger("frontend.app")

ORIGINAL_RATIO = "Original"


def get_state() -> session.SessionState:
    if "session" not in st.session_state:
        st.session_state["session"] = session.SessionState()
    return st.session_state["session"]


def upload_key(uploaded) -> tuple:
    """Identity of an UploadedFile, so a rerun does not reload the same file."""
    return (getattr(uploaded, "file_id", None), uploaded.name, uploaded.size)


def accept_payload(state: session.SessionState, payload) -> None:
    session.load_image(state, payload)
    st.session_state["prompt_text"] = ""
    st.session_state["aspect_choice"] = ORIGINAL_RATIO
    state.aspect_ratio = None
    logger.info("[UI] Loaded %s (%s, %d bytes)", payload.display_name, payload.mime_type, len(payload.data))


def handle_upload(state: session.SessionState, uploaded, source: str) -> None:
    # one marker per widget, otherwise upload and camera would keep replacing each other
    marker = f"last_{source}"
    key = upload_key(uploaded)
    if st.session_state.get(marker) == key:
        return
    st.session_state[marker] = key
    data = uploaded.getvalue()

    if is_video(uploaded.type):
        st.session_state["video"] = {"data": data, "name": uploaded.name, "mime": uploaded.type}
        try:
            st.session_state["video"]["duration"] = video_duration(data, uploaded.name)
        except UnsupportedInput as e:
            st.session_state.pop("video", None)
            session.set_error(state, e.message)
        return

    st.session_state.pop("video", None)
    try:
        accept_payload(state, payload_from_upload(uploaded.name, uploaded.type, data))
    except UnsupportedInput as e:
        session.set_error(state, e.message)


# ==========================
# Callbacks
# ==========================
def on_select_medium(medium_id) -> None:
    state = get_state()
    session.select_medium(state, medium_id)
    st.session_state["prompt_text"] = state.prompt


def on_prompt_change() -> None:
    session.edit_prompt(get_state(), st.session_state["prompt_text"])


def on_aspect_change() -> None:
    choice = st.session_state["aspect_choice"]
    session.select_aspect_ratio(get_state(), None if choice == ORIGINAL_RATIO else choice)


def on_undo() -> None:
    session.undo_background_removal(get_state())


# ==========================
# Page
# ==========================
st.set_page_config(page_title="AI Product Visualizer", page_icon="🪄", layout="wide")
st.title("🪄 AI Product Visualizer")

state = get_state()

left, right = st.columns(2, gap="large")

with left:
    # 1. Input
    st.subheader("1. Upload Product Image")
    tab_upload, tab_camera = st.tabs(["📁 Upload", "📷 Camera"])
    with tab_upload:
        uploaded = st.file_uploader(
            "Image or video",
            help="PNG, JPG, GIF up to 10MB. For a video, pick a frame to capture.",
        )
        if uploaded is not None:
            handle_upload(state, uploaded, "upload")

        video = st.session_state.get("video")
        if video:
            st.video(video["data"])
            at = 0.0
            if video.get("duration"):
                at = st.slider("Frame at (seconds)", 0.0, float(video["duration"]), 0.0, step=0.1)
            if st.button("📸 Capture frame", use_container_width=True):
                try:
                    accept_payload(state, capture_video_frame(video["data"], video["name"], at))
                except UnsupportedInput as e:
                    session.set_error(state, e.message)
                st.rerun()

    with tab_camera:
        snapshot = st.camera_input("Take a photo of the product")
        if snapshot is not None:
            handle_upload(state, snapshot, "camera")

    controls_disabled = state.image is None
    if state.image is not None:
        caption = state.image.display_name
        if state.background_removed:
            caption += " (background removed)"
        st.image(state.image.data, caption=caption, width=240)

        col_rm, col_undo = st.columns(2)
        with col_rm:
            remove_clicked = st.button(
                "✂️ Remove background",
                disabled=state.is_loading or state.background_removed,
                use_container_width=True,
            )
        with col_undo:
            st.button(
                "↩️ Undo",
                disabled=not state.can_undo or state.is_loading,
                on_click=on_undo,
                use_container_width=True,
            )
        if remove_clicked:
            with st.spinner("Removing background..."):
                session.remove_background(state, call_remove_background)
            st.rerun()
    else:
        st.caption("Upload an image to start.")

    # 2. Medium
    st.subheader("2. Choose a Medium")
    cols = st.columns(len(MEDIA_OPTIONS))
    for col, medium in zip(cols, MEDIA_OPTIONS):
        with col:
            st.button(
                f"{medium.icon} {medium.label}",
                key=f"medium_{medium.id.value}",
                type="primary" if state.selected_medium == medium.id else "secondary",
                disabled=controls_disabled,
                on_click=on_select_medium,
                args=(medium.id,),
                use_container_width=True,
            )

    # 3. Prompt
    st.subheader("3. Edit or Refine Prompt")
    if "prompt_text" not in st.session_state:
        st.session_state["prompt_text"] = state.prompt
    st.text_area(
        "Prompt",
        key="prompt_text",
        height=140,
        disabled=controls_disabled,
        on_change=on_prompt_change,
        placeholder="Select a medium to get a starter prompt, or write your own...",
        label_visibility="collapsed",
    )
    st.selectbox(
        "Aspect ratio",
        [ORIGINAL_RATIO, *ASPECT_RATIOS],
        key="aspect_choice",
        disabled=controls_disabled,
        on_change=on_aspect_change,
    )

    if state.error:
        st.error(f"**Error:** {state.error}")

    generate_clicked = st.button(
        "🪄 Generate Visual",
        type="primary",
        disabled=controls_disabled or state.is_loading or not resolve_prompt(state),
        use_container_width=True,
    )
    if generate_clicked:
        with st.spinner("Generating your visual... please wait."):
            session.generate(state, call_generate)
        st.rerun()

with right:
    if state.generated_image is not None:
        result = state.generated_image
        st.image(result.data, caption="✨ Generated visual", use_container_width=True)
        st.download_button(
            "⬇️ Download",
            data=result.data,
            file_name=export_filename("visual", result.mime_type),
            mime=result.mime_type,
            use_container_width=True,
        )
    else:
        st.markdown("### 🪄 Your generated image will appear here")
        st.caption("Ready to generate." if state.image is not None else "Upload an image to start.")

with st.sidebar:
    st.write("🔗 Backend:", settings.BACKEND_URL)
    with st.expander("Session state"):
        st.json(state.to_dict())
