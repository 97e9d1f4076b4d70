"""Reddit URL helpers and the canned summarization backend."""

from __future__ import annotations

import asyncio
import logging
import re

from .exceptions import InvalidRedditUrl
from .interfaces import SummaryClient
from .models import SummaryResponse

logger = logging.getLogger(__name__)

REDDIT_URL = re.compile(r"^https?://(www\.)?reddit\.com/r/[\w\d_]+/comments/[\w\d]+")
POST_ID = re.compile(r"/comments/([a-zA-Z0-9]+)")


def is_valid_reddit_url(url: str) -> bool:
    """Return True for ``http(s)://[www.]reddit.com/r/<sub>/comments/<id>...`` URLs."""
    return bool(REDDIT_URL.match(url.strip()))


def extract_post_id(url: str) -> str:
    """Return the ``/comments/<id>`` segment, or ``"default"`` when there is none."""
    match = POST_ID.search(url)
    return match.group(1) if match else "default"


def require_reddit_url(url: str) -> str:
    url = url.strip()
    if not is_valid_reddit_url(url):
        raise InvalidRedditUrl(f"Not a Reddit comments URL: {url!r}")
    return url


CANNED_SUMMARIES = (
    SummaryResponse(
        title="The Future of AI Development: Balancing Innovation with Ethics",
        summary=(
            "A comprehensive discussion examining the current state of AI development and its "
            "trajectory. The Reddit community explores both the transformative opportunities and "
            "significant challenges facing developers, with particular emphasis on ethical AI "
            "development, bias mitigation, and the balance between automation and human "
            "creativity in programming."
        ),
        viewpoints=[
            "AI will revolutionize software development by automating routine coding tasks and accelerating development cycles",
            "Human creativity, critical thinking, and ethical judgment remain irreplaceable in programming",
            "The key is finding the right balance between AI assistance and human expertise to enhance rather than replace developers",
            "Ethical AI development requires transparent algorithms, bias mitigation, and inclusive development practices",
            "Open-source AI tools democratize development but raise concerns about code quality and security",
        ],
    ),
    SummaryResponse(
        title="Climate Solutions: The Great Technology vs. Policy Debate",
        summary=(
            "An in-depth Reddit discussion analyzing various approaches to addressing climate "
            "change. The community examines the ongoing debate between technological innovation "
            "and policy interventions, covering renewable energy breakthroughs, carbon capture "
            "technologies, nuclear power, and the critical role of government regulation in "
            "creating systemic environmental change."
        ),
        viewpoints=[
            "Technological innovation alone can solve climate issues through breakthrough solutions like fusion energy and advanced carbon capture",
            "Policy changes, carbon pricing, and strict regulations are essential for meaningful environmental progress at scale",
            "A combined approach of aggressive policy and technological innovation creates the most effective climate strategy",
            "Individual action and corporate responsibility must complement systemic changes, but can't replace them",
            "Nuclear energy is essential for clean baseload power, despite public concerns about safety",
        ],
    ),
    SummaryResponse(
        title="Remote Work Revolution: Redefining the Future of Employment",
        summary=(
            "A comprehensive Reddit discussion exploring how remote work has fundamentally "
            "transformed workplace culture post-pandemic. The community examines its "
            "multifaceted effects on employee productivity, team collaboration, company culture, "
            "mental health, and work-life balance, featuring insights from employees, managers, "
            "and business owners across various industries."
        ),
        viewpoints=[
            "Remote work significantly increases productivity, reduces commute stress, and improves work-life balance for most employees",
            "In-person collaboration is essential for creativity, mentorship, and building strong team relationships",
            "Hybrid models offer the optimal balance of remote flexibility and office interaction for different work types",
            "The future of work requires new management approaches, digital collaboration tools, and performance metrics",
            "Remote work creates geographic inequality, with some areas losing talent while others struggle with housing costs",
        ],
    ),
    SummaryResponse(
        title="Social Media's Mental Health Crisis: A Generation Under Pressure",
        summary=(
            "A thoughtful Reddit discussion examining the complex relationship between social "
            "media usage and mental health, particularly among Gen Z and millennials. The "
            "community explores both the benefits of digital connection and community building, "
            "alongside the concerning rise in anxiety, depression, and body image issues linked "
            "to algorithm-driven social platforms."
        ),
        viewpoints=[
            "Social media creates unrealistic expectations, comparison culture, and FOMO that significantly harm mental health",
            "Digital platforms provide valuable community, support networks, and connection for marginalized groups",
            "Algorithm-driven content feeds are designed to be addictive and exploit psychological vulnerabilities",
            "Digital literacy education and mindful usage practices are key to healthy social media relationships",
            "Platform regulation and design changes are needed to prioritize user wellbeing over engagement metrics",
        ],
    ),
    SummaryResponse(
        title="The Global Housing Crisis: Causes, Consequences, and Solutions",
        summary=(
            "An extensive Reddit analysis of the housing affordability crisis affecting major "
            "cities worldwide. The discussion covers the complex interplay of factors including "
            "rising prices, supply shortages, investment speculation, zoning restrictions, and "
            "various proposed solutions ranging from zoning reform and rent control to social "
            "housing programs and speculation taxes."
        ),
        viewpoints=[
            "Restrictive zoning laws, NIMBY policies, and excessive regulations artificially limit housing supply and drive up costs",
            "Investment speculation, corporate ownership, and treating housing as a commodity drive up prices unfairly",
            "Government intervention through rent control, social housing, and tenant protections is necessary to ensure affordability",
            "Market-based solutions, streamlined permitting, and massive construction increases are the only long-term answer",
            "The crisis requires coordinated policy addressing supply, speculation, wages, and urban planning simultaneously",
        ],
    ),
)


class MockSummaryClient(SummaryClient):
    """
    Summarizer that returns one of a few canned threads.

    The same post id always maps to the same summary (sum of its code points,
    modulo the number of canned threads).

    Usage:
        client = MockSummaryClient(latency=0)
        summary = await client.summarize("https://www.reddit.com/r/python/comments/abc123/x")
    """

    def __init__(self, *, latency: float = 3.0) -> None:
        self.latency = latency

    async def summarize(self, reddit_url: str) -> SummaryResponse:
        if self.latency > 0:
            await asyncio.sleep(self.latency)

        post_id = extract_post_id(reddit_url)
        index = sum(ord(char) for char in post_id) % len(CANNED_SUMMARIES)
        summary = CANNED_SUMMARIES[index]
        logger.debug("Summarized %s (post %s) as %r", reddit_url, post_id, summary.title)
        return SummaryResponse(
            title=summary.title,
            summary=summary.summary,
            viewpoints=list(summary.viewpoints),
        )
