"""
Tests for the data analysis chain - output parsing and failure handling.
"""

import json
import pytest
from unittest.mock import patch
from langchain_core.runnables import RunnableLambda

from assistant.chat import AssistantError
from assistant.data_analysis_chain import DataAnalysisParser, analyze_data, SAMPLE_ROWS


class TestDataAnalysisParser:
    """Tests for DataAnalysisParser."""

    def test_full_output(self):
        text = json.dumps({
            'summary': 'Sales data',
            'insights': ['Revenue grows'],
            'recommendations': ['Track churn'],
            'trends': ['Up']
        })

        assert DataAnalysisParser().parse(text) == {
            'summary': 'Sales data',
            'insights': ['Revenue grows'],
            'recommendations': ['Track churn'],
            'trends': ['Up']
        }

    def test_defaults_for_missing_fields(self):
        assert DataAnalysisParser().parse('{}') == {
            'summary': 'No summary available',
            'insights': [],
            'recommendations': [],
            'trends': []
        }

    def test_fenced_json(self):
        text = '```json\n{"summary": "ok", "insights": "single"}\n```'
        result = DataAnalysisParser().parse(text)

        assert result['summary'] == 'ok'
        assert result['insights'] == ['single']

    @pytest.mark.parametrize('text', ['not json', '[1, 2]'])
    def test_invalid_output(self, text):
        with pytest.raises(ValueError):
            DataAnalysisParser().parse(text)


class TestAnalyzeData:
    """Tests for analyze_data with a stubbed model."""

    def test_sample_sent_to_chain(self):
        seen = {}

        def fake_model(inputs):
            seen.update(inputs)
            return '{"summary": "Ten rows", "trends": ["flat"]}'

        chain = RunnableLambda(fake_model) | DataAnalysisParser()
        records = [{'x': i} for i in range(25)]

        with patch('assistant.data_analysis_chain.create_data_analysis_chain', return_value=chain):
            result = analyze_data(records, query='Any trends?')

        assert result['summary'] == 'Ten rows'
        assert result['trends'] == ['flat']
        assert seen['query'] == 'Any trends?'
        assert len(json.loads(seen['data_json'])) == SAMPLE_ROWS

    def test_default_query(self):
        seen = {}

        def fake_model(inputs):
            seen.update(inputs)
            return '{}'

        chain = RunnableLambda(fake_model) | DataAnalysisParser()
        with patch('assistant.data_analysis_chain.create_data_analysis_chain', return_value=chain):
            analyze_data([{'x': 1}])

        assert seen['query'] == 'Analyze this data'

    def test_unparseable_output(self):
        chain = RunnableLambda(lambda _: 'definitely not json') | DataAnalysisParser()

        with patch('assistant.data_analysis_chain.create_data_analysis_chain', return_value=chain):
            with pytest.raises(AssistantError, match="Failed to analyze data with AI"):
                analyze_data([{'x': 1}])

    def test_model_unreachable(self):
        def unreachable(_):
            raise ConnectionError("Connection refused")

        chain = RunnableLambda(unreachable) | DataAnalysisParser()

        with patch('assistant.data_analysis_chain.create_data_analysis_chain', return_value=chain):
            with pytest.raises(AssistantError):
                analyze_data([{'x': 1}])
