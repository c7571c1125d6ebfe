"""Cohere-backed generation calls used by the review pipeline."""

import json
import logging
import re

import cohere
from langchain_cohere import ChatCohere
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from review_models import Role

logger = logging.getLogger(__name__)

WEB_SEARCH_CONNECTOR = {"id": "web-search"}


def parse_json_object(text):
    """Parse a JSON object, tolerating prose or code fences around it."""
    text = text.strip()
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        m = re.search(r"(\{[\s\S]*\})", text)
        if not m:
            raise ValueError("Model response did not contain a JSON object.")
        return json.loads(m.group(1))


def to_langchain_messages(preamble, history):
    messages = [SystemMessage(content=preamble)]
    for msg in history:
        if msg.role == Role.USER:
            messages.append(HumanMessage(content=msg.text))
        else:
            messages.append(AIMessage(content=msg.text))
    return messages


class CohereGenerator:
    """Text, JSON, search-grounded and chat generation against Cohere.

    `llm`, `client` and `search_client` can be passed in to reuse existing
    clients; otherwise they are created from `api_key`.
    """

    def __init__(self, api_key, model, temperature=0.3, llm=None, client=None, search_client=None):
        self.model = model
        self.temperature = temperature
        self.llm = llm or ChatCohere(cohere_api_key=api_key, model=model, temperature=temperature)
        self.client = client or cohere.ClientV2(api_key=api_key)
        self.search_client = search_client or cohere.Client(api_key=api_key)

    @classmethod
    def from_settings(cls, settings):
        return cls(settings.cohere_api_key, settings.cohere_model, settings.temperature)

    def generate(self, prompt):
        response = self.llm.invoke(prompt)
        return response.content

    def generate_json(self, prompt, schema):
        response = self.client.chat(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            response_format={"type": "json_object", "schema": schema},
            temperature=self.temperature,
        )
        return parse_json_object(response.message.content[0].text)

    def search(self, prompt):
        """Run a web-search grounded chat; returns (text, documents)."""
        response = self.search_client.chat(
            model=self.model,
            message=prompt,
            connectors=[WEB_SEARCH_CONNECTOR],
            temperature=self.temperature,
        )
        documents = response.documents or []
        logger.debug("Search returned %d grounding documents", len(documents))
        return response.text, documents

    def chat(self, preamble, history):
        response = self.llm.invoke(to_langchain_messages(preamble, history))
        return response.content
