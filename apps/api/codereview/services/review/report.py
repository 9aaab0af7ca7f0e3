from __future__ import annotations

from typing import List

from loguru import logger

from codereview.core.errors import GenerationFailed
from codereview.services.llm.base import CompletionRequest, TextCompletion
from codereview.services.review.models import AnalysisDepth, ReviewBundle, ReviewOptions

SYSTEM_INSTRUCTIONS = """You are an experienced senior developer and code reviewer.
Analyze the GitHub repository below and write a detailed code review report that
hackathon judges can use as a reference.
Keep technical terms in their original English form.
Distinguish between technology that is genuinely implemented and parts that look
like they were simply generated by an LLM."""

SUMMARY_INSTRUCTIONS = "You summarize code review reports."

DEPTH_GUIDANCE = {
    AnalysisDepth.BASIC: "Keep each section short: 2-4 bullet points, no code excerpts unless essential.",
    AnalysisDepth.DETAILED: "Analyze each section in detail with concrete code examples.",
    AnalysisDepth.COMPREHENSIVE: (
        "Be exhaustive: analyze each section in depth, quote the relevant code, "
        "and list every issue you find with its file path."
    ),
}


def _or(value, fallback: str) -> str:
    return str(value) if value not in (None, "") else fallback


def _format_samples(bundle: ReviewBundle) -> str:
    if not bundle.code_samples:
        return "(no code samples available)"
    blocks = []
    for s in bundle.code_samples:
        blocks.append(f"### {s.path} ({s.size} bytes)\n```\n{s.content}\n```")
    return "\n\n".join(blocks)


def _sections(options: ReviewOptions) -> List[str]:
    sections = [
        "**Project overview and purpose**",
        "**Tech stack analysis**",
        "**Architecture and code structure assessment**",
        "**Code quality analysis**\n"
        "   - Coding style consistency\n"
        "   - Error handling\n"
        "   - Security considerations\n"
        "   - Performance optimization",
        "**Genuine implementation vs LLM-generated code**\n"
        "   - Parts that appear to be written by a developer\n"
        "   - Parts that look LLM-generated, and why",
    ]
    if options.include_tests and options.include_documentation:
        sections.append("**Testing and documentation level**")
    elif options.include_tests:
        sections.append("**Testing level**")
    elif options.include_documentation:
        sections.append("**Documentation level**")
    sections += [
        "**Deployment and operational readiness**",
        "**Suggested improvements**",
        "**Overall assessment from a hackathon judging perspective**\n"
        "   - Technical completeness (1-10)\n"
        "   - Creativity and innovation (1-10)\n"
        "   - Practicality (1-10)\n"
        "   - Code quality (1-10)",
        "**Conclusion**",
    ]
    return [f"{i}. {s}" for i, s in enumerate(sections, start=1)]


def build_prompt(bundle: ReviewBundle, options: ReviewOptions) -> str:
    a = bundle.analysis
    repo = a.repository
    files = a.important_files

    languages = "\n".join(f"- {lang}: {count} files" for lang, count in a.languages.items()) or "- (none detected)"
    sections = "\n".join(_sections(options))

    return f"""Write a code review report for the following GitHub repository:

## Repository information
- Name: {repo.name}
- Description: {_or(repo.description, "No description")}
- Primary language: {_or(repo.language, "Unknown")}
- Stars: {repo.stargazers_count}
- Forks: {repo.forks_count}
- Created: {_or(repo.created_at, "Unknown")}
- Last updated: {_or(repo.updated_at, "Unknown")}
- Topics: {", ".join(repo.topics) or "None"}

## Project structure
- Total entries: {a.structure.total_files}
- Directories: {a.structure.directories}
- Files: {a.structure.files}

## Languages
{languages}

## Key files
- README: {_or(files.readme, "None")}
- package.json: {_or(files.package_json, "None")}
- Dockerfile: {_or(files.dockerfile, "None")}
- .gitignore: {_or(files.gitignore, "None")}

## Code samples
{_format_samples(bundle)}

## Analysis request
Analysis depth: {options.depth.value}
{DEPTH_GUIDANCE[options.depth]}

Include the following sections in the report:

{sections}
"""


class ReportGenerator:
    def __init__(
        self,
        llm: TextCompletion,
        report_max_tokens: int = 4000,
        summary_max_tokens: int = 200,
        temperature: float = 0.3,
    ) -> None:
        self.llm = llm
        self.report_max_tokens = report_max_tokens
        self.summary_max_tokens = summary_max_tokens
        self.temperature = temperature

    async def _complete(self, request: CompletionRequest, what: str) -> str:
        text = await self.llm.complete(request)
        if not text:
            raise GenerationFailed(f"Model returned an empty {what}")
        return text

    async def generate_report(self, bundle: ReviewBundle, options: ReviewOptions) -> str:
        logger.info("Generating {} report for {}", options.depth.value, bundle.analysis.repository.name)
        request = CompletionRequest(
            system_instructions=SYSTEM_INSTRUCTIONS,
            user_prompt=build_prompt(bundle, options),
            max_output_tokens=self.report_max_tokens,
            temperature=self.temperature,
        )
        return await self._complete(request, "report")

    async def generate_summary(self, full_report: str) -> str:
        request = CompletionRequest(
            system_instructions=SUMMARY_INSTRUCTIONS,
            user_prompt=f"Summarize the following code review report in 2-3 sentences.\n\n{full_report}",
            max_output_tokens=self.summary_max_tokens,
            temperature=self.temperature,
        )
        return await self._complete(request, "summary")
