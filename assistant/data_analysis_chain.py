"""
LangChain chain for AI data analysis.
Sample rows in, structured summary/insights/recommendations/trends out.
"""

import json
import hashlib
import logging
from typing import Dict, Any, List, Optional
from langchain_core.prompts import ChatPromptTemplate
from langchain_core.output_parsers import BaseOutputParser
from langchain_core.runnables import Runnable
from langchain_ollama import OllamaLLM

from assistant.chat import AssistantError
from assistant.langchain_setup import ensure_langchain_ready
from assistant.ollama_client import get_base_url, get_model_name

# Set up logger
logger = logging.getLogger(__name__)


SAMPLE_ROWS = 10
DEFAULT_QUERY = 'Analyze this data'
LIST_FIELDS = ('insights', 'recommendations', 'trends')


class DataAnalysisParser(BaseOutputParser[Dict[str, Any]]):
    """Parser for JSON analysis output with defaults for missing fields."""

    def parse(self, text: str) -> Dict[str, Any]:
        cleaned = text.strip()

        # Models sometimes wrap JSON in a fenced block
        if cleaned.startswith('```'):
            cleaned = cleaned.strip('`')
            if cleaned.lower().startswith('json'):
                cleaned = cleaned[4:]
            cleaned = cleaned.strip()

        try:
            result = json.loads(cleaned or '{}')
        except json.JSONDecodeError as e:
            raise ValueError(f"Analysis output is not valid JSON: {e}")

        if not isinstance(result, dict):
            raise ValueError(f"Analysis output must be a JSON object, got {type(result).__name__}")

        analysis = {'summary': result.get('summary') or "No summary available"}
        for field in LIST_FIELDS:
            value = result.get(field) or []
            if isinstance(value, str):
                value = [value]
            analysis[field] = [str(item) for item in value]

        return analysis


def create_data_analysis_chain(
    model_name: Optional[str] = None,
    base_url: Optional[str] = None
) -> Runnable:
    """
    Create data analysis LangChain chain.

    Args:
        model_name: Ollama model name (defaults to env)
        base_url: Ollama base URL (defaults to env)

    Returns:
        Runnable chain taking {'query', 'data_json'}
    """
    ensure_langchain_ready()

    llm = OllamaLLM(
        model=model_name or get_model_name(),
        base_url=base_url or get_base_url(),
        format='json',
        temperature=0.7
    )

    prompt = ChatPromptTemplate.from_messages([
        ("system", "You are a data analysis expert. Analyze the provided data and respond with detailed insights in JSON format."),
        ("human", """Analyze the following data and provide insights based on the user query: "{query}"

Data (first 10 rows as sample):
{data_json}

Please provide your analysis in JSON format with the following structure:
{{
  "summary": "Brief summary of the data",
  "insights": ["Key insight 1", "Key insight 2"],
  "recommendations": ["Recommendation 1", "Recommendation 2"],
  "trends": ["Trend 1", "Trend 2"]
}}""")
    ])

    return prompt | llm | DataAnalysisParser()


def analyze_data(
    records: List[Dict[str, Any]],
    query: Optional[str] = None,
    **chain_kwargs
) -> Dict[str, Any]:
    """
    Ask the model for an analysis of a dataset sample.

    Args:
        records: Dataset rows; only the first ten are sent
        query: User question (defaults to a general analysis request)
        **chain_kwargs: Additional arguments for chain creation

    Returns:
        Dictionary with 'summary', 'insights', 'recommendations', 'trends'

    Raises:
        AssistantError: If the chain fails or output cannot be parsed
    """
    query = query or DEFAULT_QUERY
    data_json = json.dumps(records[:SAMPLE_ROWS], indent=2, default=str)

    prompt_hash = hashlib.md5(data_json.encode()).hexdigest()[:8]
    logger.info(f"Analyzing data: rows={min(len(records), SAMPLE_ROWS)}, prompt_hash={prompt_hash}")

    try:
        chain = create_data_analysis_chain(**chain_kwargs)
        result = chain.invoke({'query': query, 'data_json': data_json})
    except Exception as e:
        logger.error(f"Data analysis failed: {e}")
        raise AssistantError("Failed to analyze data with AI") from e

    logger.info(f"Data analysis complete: insights={len(result['insights'])}")
    return result
