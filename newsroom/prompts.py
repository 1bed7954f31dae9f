from typing import List, Sequence

from newsroom.models import EnrichedRepo, QuickHit


def _project_data(repo: EnrichedRepo) -> str:
    created = repo.created_at.date().isoformat() if repo.created_at else "unknown"
    pushed = repo.pushed_at.date().isoformat() if repo.pushed_at else "unknown"
    lines = [
        f"- Name: {repo.name}",
        f"- Description: {repo.description}",
        f"- Stars: {repo.stars:,} | Language: {repo.language}",
        f"- Topics: {', '.join(repo.topics) or 'none listed'}",
        f"- Created: {created} | Last pushed: {pushed}",
    ]
    if repo.release_name:
        lines.append(f"- Latest release: {repo.release_name}")
    data = "\n".join(lines)
    data += f"\n\nREADME EXCERPT:\n{repo.readme_excerpt or '(no readme available)'}"
    if repo.release_notes:
        data += f"\n\nRELEASE NOTES:\n{repo.release_notes}"
    return data


def lead_article_prompt(repo: EnrichedRepo) -> str:
    return f"""You are a senior technology journalist writing for The Git Times, a broadsheet newspaper for builders and developers. Write a compelling 300-400 word article about this GitHub project.

PROJECT DATA:
{_project_data(repo)}

Write in authoritative newspaper style. No hype, no fluff. Give builders the signal they need: what the project does, why it matters, and what makes it noteworthy right now.

Output EXACTLY in this format (include the markers):

HEADLINE: [A compelling newspaper headline, 8-12 words]
SUBHEADLINE: [A clarifying subheadline, 12-20 words]
BODY: [300-400 word article body in short paragraphs. Include concrete details from the readme and release notes. Use markdown: **bold** for emphasis, `backticks` for code/tool names, bullet lists where appropriate.]
BUILDERS_TAKE: [2-3 sentences of practical advice for developers considering this project.]"""


def secondary_article_prompt(repo: EnrichedRepo) -> str:
    return f"""You are a technology journalist writing for The Git Times, a broadsheet newspaper for builders. Write a tight 150-200 word article about this GitHub project.

PROJECT DATA:
{_project_data(repo)}

Write in crisp newspaper style. No hype. Concrete details only.

Output EXACTLY in this format (include the markers):

HEADLINE: [Newspaper headline, 6-10 words]
SUBHEADLINE: [Clarifying subheadline, 10-16 words]
BODY: [150-200 word article in short paragraphs. Use markdown: **bold** for emphasis, `backticks` for code/tool names.]
BUILDERS_TAKE: [1-2 sentences of practical advice for developers.]"""


def quick_hit_prompt(hits: Sequence[QuickHit]) -> str:
    listing = "\n".join(
        f"{i}. {hit.name} ({hit.stars:,} stars, {hit.language}): {hit.description}"
        for i, hit in enumerate(hits, 1)
    )
    slots = "\n".join(f"{i}. [single sentence summary]" for i in range(1, len(hits) + 1))
    return f"""You are writing one-line summaries for a newspaper's "Quick Hits" section. Each summary must be a single punchy sentence, max 30 words, telling a builder what the project does and why it's interesting right now.

REPOS:
{listing}

Output EXACTLY in this format, one line per repo, numbered to match:

{slots}"""


def edition_tagline_prompt(repos: List[EnrichedRepo]) -> str:
    names = ", ".join(f"{r.name} ({r.language})" for r in repos)
    return f"""You write pithy taglines for The Git Times, a tech newspaper. Today's trending repos are: {names}.

Write a single tagline (max 15 words) that captures today's theme: witty, observational, like a newspaper edition subtitle. No quotes, no hype. Just the tagline, nothing else."""
