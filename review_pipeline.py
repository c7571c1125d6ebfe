"""Run a repository review: fetch, summarize, review each file, synthesize.

`run_analysis` drives the stages in order and reports an AnalysisStatus
after each step. Recommendations, visual documentation and the follow-up
chat run afterwards against the same AnalysisSession.
"""

import logging

import review_prompts
from fetch_github import fetch_repository
from review_errors import GenerationFailure, NoAnalyzableContent, ReviewError
from review_models import (
    PLACEHOLDER_DIAGRAM,
    AnalysisStatus,
    ChatMessage,
    FileReview,
    GroundingSource,
    RecommendedRepos,
    Role,
    Stage,
    VisualDocumentation,
)

logger = logging.getLogger(__name__)


def call_model(fn, *args):
    """Call the generation backend, turning any failure into GenerationFailure."""
    try:
        return fn(*args)
    except GenerationFailure:
        raise
    except Exception as e:
        logger.error("Cohere API call failed: %s", e)
        raise GenerationFailure(f"Cohere API Error: {e}") from e


def generate_architecture_summary(generator, structural_files):
    if not structural_files:
        return review_prompts.NO_STRUCTURAL_FILES_SUMMARY
    prompt = review_prompts.architecture_prompt(structural_files)
    return call_model(generator.generate, prompt)


def review_code_files(generator, code_files, architecture_summary, on_progress=None):
    """Review files one at a time, in order, reporting (index + 1, total) per file."""
    reviews = []
    total = len(code_files)
    for i, f in enumerate(code_files):
        if on_progress is not None:
            on_progress(AnalysisStatus(Stage.REVIEWING, f"Reviewing {f.path}...", i + 1, total))
        prompt = review_prompts.file_review_prompt(f, architecture_summary)
        reviews.append(FileReview(f.path, call_model(generator.generate, prompt)))
    return reviews


def synthesize_report(generator, reviews):
    individual = "\n\n".join(r.tagged() for r in reviews)
    return call_model(generator.generate, review_prompts.synthesis_prompt(individual))


def run_analysis(session, repo_url, generator, fetcher=fetch_repository, on_progress=None):
    """Run the full review for `repo_url` and return the final report.

    The session is reset first. Results are stored on it only if every stage
    succeeds; on failure the error propagates and the session stays empty.
    """
    session.reset()

    def progress(status):
        session.status = status
        logger.info("[%s] %s", status.stage.value, status.message)
        if on_progress is not None:
            on_progress(status)

    try:
        repo_data = fetcher(repo_url, on_progress=progress)
        if not repo_data.code_files:
            raise NoAnalyzableContent(
                "Could not find any reviewable source code files in this repository."
            )

        progress(AnalysisStatus(Stage.SUMMARIZING, "Generating architectural summary..."))
        summary = generate_architecture_summary(generator, repo_data.structural_files)

        reviews = review_code_files(generator, repo_data.code_files, summary, progress)

        progress(AnalysisStatus(Stage.SYNTHESIZING, "Compiling final report..."))
        report = synthesize_report(generator, reviews)
    finally:
        session.status = None

    session.repo_url = repo_url
    session.repo_data = repo_data
    session.architecture_summary = summary
    session.file_reviews = reviews
    session.report = report
    return report


def _require_report(session):
    if not session.has_report:
        raise ReviewError("Run a repository analysis first.")


def extract_sources(documents):
    """Keep grounding citations that carry both a URI and a title."""
    sources = []
    for doc in documents or []:
        uri = doc.get("url") or doc.get("uri")
        title = doc.get("title")
        if uri and title:
            sources.append(GroundingSource(uri=uri, title=title))
    return tuple(sources)


def find_recommendations(session, generator):
    _require_report(session)
    prompt = review_prompts.recommendation_prompt(session.report)
    text, documents = call_model(generator.search, prompt)
    session.recommendations = RecommendedRepos(text=text, sources=extract_sources(documents))
    return session.recommendations


def generate_visual_docs(session, generator):
    _require_report(session)
    prompt = review_prompts.visual_docs_prompt(
        session.architecture_summary, session.repo_data.all_files
    )
    data = call_model(generator.generate_json, prompt, review_prompts.VISUAL_DOCS_SCHEMA)
    if not isinstance(data, dict):
        raise GenerationFailure("Cohere API Error: expected a JSON object for visual documentation.")
    missing = [
        name for name in VisualDocumentation.field_names()
        if not isinstance(data.get(name), str)
    ]
    if missing:
        raise GenerationFailure(
            f"Cohere API Error: response is missing diagram fields: {', '.join(missing)}"
        )
    session.visual_docs = VisualDocumentation(
        **{name: data[name] for name in VisualDocumentation.field_names()}
    )
    return session.visual_docs


def is_renderable_diagram(code):
    code = (code or "").strip()
    return bool(code) and code != PLACEHOLDER_DIAGRAM


def renderable_diagrams(visual_docs):
    """Map of field name to Mermaid source, without empty or placeholder diagrams."""
    return {
        name: code for name, code in visual_docs.to_dict().items()
        if is_renderable_diagram(code)
    }


def send_chat_message(session, generator, text):
    """Ask a follow-up question; the whole analysis context is resent every turn."""
    _require_report(session)
    question = ChatMessage(role=Role.USER, parts=(text,))
    preamble = review_prompts.chat_preamble(
        session.architecture_summary, session.visual_docs, session.repo_data.all_files
    )
    answer = call_model(generator.chat, preamble, session.chat_history + [question])
    reply = ChatMessage(role=Role.MODEL, parts=(answer,))
    session.chat_history.extend([question, reply])
    return reply


def describe_error(exc):
    return str(exc) or "An unknown error occurred."
