"""Prompt builders for the page stages."""

from starwiki.domain.entities.wiki import SectionCandidate, SectionHeading

EMPTY = "(empty)"


def system_prompt(language_name: str) -> str:
    return (
        f"You are a careful, terse technical writer. Respond in {language_name}. "
        "Conform to the provided schema. Return JSON only."
    )


def _bullets(items: list[str]) -> list[str]:
    return [f"- {item}" for item in items]


def score_files(title: str, page_id: str, files: list[str], context: str) -> str:
    return "\n".join(
        [
            "Score each FILE by relevance to this PAGE's CONTEXT. 0 = not relevant, 100 = critical.",
            f"PAGE: {title} (id={page_id})",
            "FILES:",
            *_bullets(files),
            "",
            "CONTEXT (excerpts by file):",
            context or EMPTY,
            "",
            "Rules: keep 'why' concrete and brief.",
            "Output: JSON only (no fences, no markdown).",
        ]
    )


def headings(title: str, page_id: str, preferred_files: list[str], context: str) -> str:
    return "\n".join(
        [
            "Produce a short lead and 2-8 grounded section headings (ids + titles). No prose.",
            f"PAGE: {title} (id={page_id})",
            "Prefer these FILES:",
            *_bullets(preferred_files),
            "",
            "CONTEXT (excerpts):",
            context or EMPTY,
            "",
            'Rules: avoid generic headings such as "Overview" unless strongly suggested by context.',
        ]
    )


def plan_section(
    title: str,
    section: SectionHeading,
    context: str,
    preferred_files: list[str],
) -> str:
    return "\n".join(
        [
            "Plan this single section; return must_cover bullets, a code_need_score (0..100), "
            "optional expected_output, and up to 5 primary_files.",
            f"PAGE: {title}",
            f"SECTION: {section.heading} (id={section.id})",
            "Prefer FILES:",
            *_bullets(preferred_files),
            "",
            "CONTEXT:",
            context or EMPTY,
        ]
    )


def code_candidate(
    title: str,
    section_id: str,
    expected_output: str | None,
    must_cover: list[str],
    context: str,
) -> str:
    return "\n".join(
        [
            "Generate ONE minimal code snippet grounded by CONTEXT.",
            f"PAGE: {title}",
            f"SECTION id: {section_id}",
            f"Expected output: {expected_output or '(not specified)'}",
            "Must cover:",
            *_bullets(must_cover),
            "",
            "CONTEXT:",
            context or EMPTY,
            "",
            "Rules:",
            "- Return JSON only (no fences, no markdown).",
            '- The "text" MUST be a single self-contained code snippet.',
            "- Do NOT output shell/CLI commands (bash, zsh, docker, curl, pip, npm, yarn, make).",
            "- Do NOT output standalone JSON/YAML/TOML config as the snippet.",
            "- If APIs are unknown, prefer simpler code using visible constructs.",
            "- Rate expected_output_alignment (0..100): how well the snippet produces the expected output.",
        ]
    )


def select_between_two(
    title: str,
    section_id: str,
    a_text: str,
    a_align: int,
    b_text: str,
    b_align: int,
) -> str:
    return "\n".join(
        [
            "Pick the better code snippet for this section (A or B).",
            f"PAGE: {title}",
            f"SECTION id: {section_id}",
            "",
            f"SNIPPET A (align={a_align}):\n{a_text}",
            "",
            f"SNIPPET B (align={b_align}):\n{b_text}",
            "",
            'Choose "winner": "A" or "B", and rate winner_alignment (0..100).',
        ]
    )


def consolidate_code(title: str, section_id: str, winner_text: str, loser_text: str) -> str:
    return "\n".join(
        [
            "Consolidate these two snippets into one improved snippet (preserve runnable minimalism).",
            f"PAGE: {title}",
            f"SECTION id: {section_id}",
            "",
            f"SNIPPET A:\n{winner_text}",
            "",
            f"SNIPPET B:\n{loser_text}",
        ]
    )


def explain_code(title: str, section_id: str, code: str, context: str) -> str:
    return "\n".join(
        [
            "Explain what the code does (no code in your output) and note risks.",
            f"PAGE: {title}",
            f"SECTION id: {section_id}",
            "",
            "CODE:",
            code,
            "",
            "CONTEXT:",
            context or EMPTY,
        ]
    )


def single_narrative(
    title: str,
    section_id: str,
    must_cover: list[str],
    context: str,
    has_selected_code: bool,
    code_explanation: str | None = None,
) -> str:
    lines = [
        "Write ONE narrative for this section (no markdown formatting).",
        f"PAGE: {title}",
        f"SECTION id: {section_id}",
        "Must cover:",
        *_bullets(must_cover),
        "",
        "You MAY refer to the accompanying code snippet."
        if has_selected_code
        else "No code integration is required.",
    ]
    if code_explanation:
        lines.append(f"Code explanation:\n{code_explanation}")
    lines += ["", "CONTEXT:", context or EMPTY, "", "Output plain fields only."]
    return "\n".join(lines)


def score_narratives(title: str, section_id: str, summaries: list[str]) -> str:
    return "\n".join(
        [
            "Score each candidate narrative for this section. 0..100.",
            f"PAGE: {title}",
            f"SECTION id: {section_id}",
            "",
            "CANDIDATES (index: short summary):",
            *[f"{i}. {s}" for i, s in enumerate(summaries)],
            "",
            "Criteria: groundedness, clarity, specificity, usefulness.",
        ]
    )


def _narrative_block(c: SectionCandidate) -> str:
    parts = [f"Heading: {c.heading}"]
    if c.paragraphs:
        parts.append("Paragraphs:\n" + "\n".join(c.paragraphs))
    if c.bullets:
        parts.append("Bullets:\n" + "\n".join(f"- {b}" for b in c.bullets))
    parts.append(f"Include code? {'yes' if c.include_code else 'no'}")
    return "\n".join(parts)


def consolidate_narratives(
    title: str,
    section_id: str,
    a: SectionCandidate,
    b: SectionCandidate,
) -> str:
    return "\n".join(
        [
            "Merge the strengths of Narrative A and Narrative B into ONE improved narrative (no markdown).",
            f"PAGE: {title}",
            f"SECTION id: {section_id}",
            "",
            f"NARRATIVE A:\n{_narrative_block(a)}",
            "",
            f"NARRATIVE B:\n{_narrative_block(b)}",
        ]
    )
