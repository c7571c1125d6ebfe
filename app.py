import html
import logging
from functools import partial

import streamlit as st
import streamlit.components.v1 as components

from fetch_github import GitHubClient, fetch_repository
from llm_review import CohereGenerator
from review_config import load_settings
from review_errors import ConfigurationError, ReviewError
from review_models import AnalysisSession, Role, Stage
from review_pipeline import (
    describe_error,
    find_recommendations,
    generate_visual_docs,
    renderable_diagrams,
    run_analysis,
    send_chat_message,
)

# ---------------------- SETUP ----------------------
st.set_page_config(page_title="GitHub Repository Reviewer", page_icon="🧠", layout="wide")

try:
    settings = load_settings()
except ConfigurationError as e:
    st.error(f"⚠️ {e}")
    st.stop()

logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

if "generator" not in st.session_state:
    st.session_state["generator"] = CohereGenerator.from_settings(settings)
if "session" not in st.session_state:
    st.session_state["session"] = AnalysisSession()

generator = st.session_state["generator"]
session = st.session_state["session"]

# Overall step (1-4) shown for each stage.
STAGE_STEPS = {
    Stage.INITIALIZING: (1, "Initializing..."),
    Stage.FETCHING: (1, "Fetching Repository..."),
    Stage.SUMMARIZING: (2, "Creating Architectural Summary..."),
    Stage.REVIEWING: (3, "Reviewing Code Files..."),
    Stage.SYNTHESIZING: (4, "Compiling Final Report..."),
}

DIAGRAM_TITLES = {
    "architecture_diagram": "Architecture Diagram",
    "dependency_graph": "Dependency Graph",
    "flowchart": "Primary Flowchart",
    "class_diagram": "Class Diagram",
}

MERMAID_TEMPLATE = """
<div class="mermaid">{code}</div>
<script type="module">
  import mermaid from "https://cdn.jsdelivr.net/npm/mermaid@10/dist/mermaid.esm.min.mjs";
  mermaid.initialize({{ startOnLoad: true }});
</script>
"""


def render_mermaid(code, height=450):
    components.html(MERMAID_TEMPLATE.format(code=html.escape(code)), height=height, scrolling=True)


# ---------------------- UI ----------------------
st.title("🧠 GitHub Repository Reviewer")
st.markdown("Get an **architecture-aware code review** of any public GitHub repository, powered by Cohere.")

repo_url = st.text_input("Enter a GitHub Repository URL (e.g. https://github.com/owner/repo):")

if st.button("🔍 Analyze Repository"):
    if not repo_url.strip():
        st.error("Please enter a GitHub repository URL.")
    else:
        status_text = st.empty()
        progress_bar = st.progress(0)

        def show_progress(status):
            step, title = STAGE_STEPS[status.stage]
            value = (step - 1) / 4
            if status.stage == Stage.REVIEWING and status.total:
                value += status.current / status.total / 4
            progress_bar.progress(min(1.0, value))
            status_text.info(f"**Step {step}/4: {title}** {status.message}")

        client = GitHubClient(token=settings.github_token, timeout=settings.github_timeout)
        try:
            run_analysis(
                session,
                repo_url.strip(),
                generator,
                fetcher=partial(fetch_repository, client=client),
                on_progress=show_progress,
            )
        except ReviewError as e:
            st.error(f"Analysis Failed: {describe_error(e)}")
        finally:
            status_text.empty()
            progress_bar.empty()

if session.has_report:
    if session.repo_data.truncated:
        st.warning("⚠️ The repository file tree was truncated by GitHub; the analysis may be incomplete.")

    st.markdown("## 🧾 Analysis Report")
    st.markdown(session.report)
    st.download_button(
        "Download report",
        session.report,
        file_name=f"{session.repo_data.owner}-{session.repo_data.repo}-review.md",
        mime="text/markdown",
    )

    with st.expander("Per-file reviews"):
        for review in session.file_reviews:
            st.markdown(f"### `{review.path}`")
            st.markdown(review.text)

    # ---------------------- RECOMMENDATIONS ----------------------
    st.markdown("---")
    st.markdown("### Next Step")
    if session.recommendations is None:
        st.write("Find open-source repositories that exemplify best practices based on this analysis.")
        if st.button("Find Recommended Repositories"):
            with st.spinner("Searching for relevant repositories..."):
                try:
                    find_recommendations(session, generator)
                except ReviewError as e:
                    st.error(f"Failed to find recommendations: {describe_error(e)}")
    if session.recommendations is not None:
        st.markdown("## 📚 Recommended Repositories")
        st.markdown(session.recommendations.text)
        if session.recommendations.sources:
            st.markdown("**Sources:**")
            for source in session.recommendations.sources:
                st.markdown(f"- [{source.title}]({source.uri})")

    # ---------------------- VISUAL DOCUMENTATION ----------------------
    st.markdown("---")
    if session.visual_docs is None:
        if st.button("Generate Visual Documentation"):
            with st.spinner("Drawing diagrams..."):
                try:
                    generate_visual_docs(session, generator)
                except ReviewError as e:
                    st.error(f"Failed to generate visual documentation: {describe_error(e)}")
    if session.visual_docs is not None:
        st.markdown("## 🗺️ Visual Documentation")
        diagrams = renderable_diagrams(session.visual_docs)
        if not diagrams:
            st.info("The model could not derive any diagrams from these files.")
        for name, code in diagrams.items():
            st.markdown(f"### {DIAGRAM_TITLES[name]}")
            render_mermaid(code)

    # ---------------------- DEEP-WIKI CHAT ----------------------
    st.markdown("---")
    st.markdown("## 💬 Ask about this repository")
    for msg in session.chat_history:
        with st.chat_message("user" if msg.role == Role.USER else "assistant"):
            st.markdown(msg.text)

    question = st.chat_input("Ask a question...")
    if question:
        with st.chat_message("user"):
            st.markdown(question)
        with st.spinner("Thinking..."):
            try:
                reply = send_chat_message(session, generator, question)
            except ReviewError as e:
                st.error(f"Chat failed: {describe_error(e)}")
            else:
                with st.chat_message("assistant"):
                    st.markdown(reply.text)
