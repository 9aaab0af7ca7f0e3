"""Tests for report prompt building and generation."""

import pytest

from codereview.core.errors import GenerationFailed
from codereview.services.analysis.sampler import CodeSample
from codereview.services.review.models import AnalysisDepth, ReviewBundle, ReviewOptions
from codereview.services.review.report import ReportGenerator, build_prompt

from fakes import FakeLLM, make_analysis


@pytest.fixture
def bundle():
    return ReviewBundle(
        analysis=make_analysis(),
        code_samples=[CodeSample(path="src/app.js", content="console.log('hi');", size=19)],
    )


class TestBuildPrompt:
    def test_includes_repository_facts(self, bundle):
        prompt = build_prompt(bundle, ReviewOptions())
        assert "- Name: widgets" in prompt
        assert "- Stars: 12" in prompt
        assert "- JavaScript: 1 files" in prompt
        assert "- README: README.md" in prompt
        assert "- Dockerfile: None" in prompt
        assert "### src/app.js (19 bytes)" in prompt
        assert "console.log('hi');" in prompt

    def test_depth_guidance(self, bundle):
        basic = build_prompt(bundle, ReviewOptions(depth=AnalysisDepth.BASIC))
        full = build_prompt(bundle, ReviewOptions(depth=AnalysisDepth.COMPREHENSIVE))
        assert "Analysis depth: basic" in basic
        assert "Analysis depth: comprehensive" in full
        assert basic != full

    def test_flags_pick_sections(self, bundle):
        both = build_prompt(bundle, ReviewOptions())
        neither = build_prompt(bundle, ReviewOptions(include_tests=False, include_documentation=False))
        docs_only = build_prompt(bundle, ReviewOptions(include_tests=False))
        assert "Testing and documentation level" in both
        assert "Testing" not in neither and "Documentation level" not in neither
        assert "**Documentation level**" in docs_only

    def test_no_samples(self):
        prompt = build_prompt(ReviewBundle(analysis=make_analysis()), ReviewOptions())
        assert "(no code samples available)" in prompt


class TestReportGenerator:
    @pytest.mark.asyncio
    async def test_report_request_limits(self, bundle):
        llm = FakeLLM()
        report = await ReportGenerator(llm).generate_report(bundle, ReviewOptions())
        assert report == "FULL REPORT"
        [req] = llm.requests
        assert req.max_output_tokens == 4000
        assert req.temperature == 0.3
        assert "code reviewer" in req.system_instructions

    @pytest.mark.asyncio
    async def test_summary_uses_full_report(self):
        llm = FakeLLM()
        summary = await ReportGenerator(llm).generate_summary("THE REPORT BODY")
        assert summary == "SHORT SUMMARY"
        [req] = llm.requests
        assert req.max_output_tokens == 200
        assert req.temperature == 0.3
        assert "THE REPORT BODY" in req.user_prompt

    @pytest.mark.asyncio
    async def test_empty_output_is_a_failure(self, bundle):
        with pytest.raises(GenerationFailed):
            await ReportGenerator(FakeLLM(report="")).generate_report(bundle, ReviewOptions())

    @pytest.mark.asyncio
    async def test_backend_failure_propagates(self, bundle):
        with pytest.raises(GenerationFailed):
            await ReportGenerator(FakeLLM(fail_on="widgets")).generate_report(bundle, ReviewOptions())
