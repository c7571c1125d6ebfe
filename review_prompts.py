"""Prompt builders for each stage of the review.

Each builder takes explicit named inputs and returns the prompt text.
"""

import json

NO_STRUCTURAL_FILES_SUMMARY = (
    "No structural files (like package.json) were found to determine the "
    "project's architecture."
)


def format_files(files):
    return "\n\n".join(f"--- File: {f.path} ---\n{f.content}" for f in files)


def architecture_prompt(structural_files):
    return f"""
You are a principal software architect. Based on the file contents of these configuration and package management files, provide a concise summary of the project's architecture.
Identify the primary language, framework, key libraries, and their roles. Describe the likely purpose and structure of the application.
The summary should be dense and technical, intended for another engineer. Do not offer suggestions, only analyze.
Format the output as clean markdown.

Files:
{format_files(structural_files)}
"""


def file_review_prompt(file, architecture_summary):
    return f"""
As a senior engineer, review the following code file. Your review must be informed by the project's overall architecture, provided below for context.
Focus on how this specific file adheres to or deviates from the architectural patterns, its specific role, and any potential integration issues.
Also cover standard code quality aspects like bugs, readability, and best practices.
Provide your feedback in well-structured Markdown format. Use headings (e.g., '### Bugs and Errors'), bullet points (using '*'), and code blocks.

Architectural Context:
---
{architecture_summary}
---

Code File to Review (Path: {file.path}):
```
{file.content}
```
"""


def synthesis_prompt(individual_reviews):
    return f"""
You are a lead software engineer synthesizing multiple code reviews from your team into a single, cohesive report for the project lead.
The goal is to provide a high-level overview of the repository's health, identify recurring patterns (both good and bad), and create a prioritized list of actionable recommendations for the entire repository.
Do not just list the individual reviews. Instead, group related findings, identify systemic issues, and provide a holistic assessment.
The final output should be a well-structured, professional report in Markdown format. Start with an executive summary.

Here are the individual file reviews to synthesize:
---
{individual_reviews}
---
"""


def recommendation_prompt(report):
    return f"""
Based on the following code review report, act as a developer advocate and recommend 3-5 high-quality, open-source GitHub repositories that demonstrate best practices the user could learn from.
For each recommendation, explain *why* it is relevant to the user's project, referencing specific points from their report.
Focus your search on projects that are well-maintained and considered good examples of software engineering for the technologies mentioned in the report.

Code Review Report:
---
{report}
---
"""


# JSON schema for the visual documentation response; all four fields required.
VISUAL_DOCS_SCHEMA = {
    "type": "object",
    "properties": {
        "architecture_diagram": {"type": "string"},
        "dependency_graph": {"type": "string"},
        "flowchart": {"type": "string"},
        "class_diagram": {"type": "string"},
    },
    "required": ["architecture_diagram", "dependency_graph", "flowchart", "class_diagram"],
}


def visual_docs_prompt(architecture_summary, files):
    return f"""
You are a technical writer producing visual documentation for a code repository.
Using the architectural summary and the source files below, write four Mermaid diagrams:
1. architecture_diagram: the main components and how they interact (graph TD).
2. dependency_graph: dependencies between the files shown (graph LR).
3. flowchart: the primary runtime flow of the application (flowchart TD).
4. class_diagram: the main classes or data types and their relations (classDiagram).
Return only Mermaid source in each field, without code fences. If a diagram cannot be derived from the files, return an empty string for it.
Output strictly valid JSON with exactly these four string fields.

Architectural Summary:
---
{architecture_summary}
---

Files:
{format_files(files)}
"""


def chat_preamble(architecture_summary, visual_docs, files):
    """System preamble for the deep-wiki chat; resent in full on every turn."""
    if visual_docs is not None:
        docs_json = json.dumps(visual_docs.to_dict(), indent=2, ensure_ascii=False)
    else:
        docs_json = "Not generated."
    return f"""
You are an expert on the repository described below and answer questions about it like a project wiki.
Ground every answer in the architectural summary, the visual documentation and the file contents provided. If the answer is not in this material, say so.
Answer in Markdown.

Architectural Summary:
---
{architecture_summary}
---

Visual Documentation (Mermaid, JSON):
---
{docs_json}
---

Files:
{format_files(files)}
"""
