"""
Offline completion gateway with canned, keyword-driven replies.

Speaks the same LANDING_PAGE_DATA protocol as a real model so the whole
chat flow can be exercised without credentials.
"""
import asyncio
import json
from typing import Dict, List, Tuple

from landing_engine.logging_config import logger
from landing_engine.services.completion_gateway import CompletionGateway, History
from landing_engine.services.extraction import SENTINEL

SCRIPTS: List[Tuple[Tuple[str, ...], Dict, str]] = [
    (
        ("fintech", "finance", "payment"),
        {
            "companyName": "FinTechPro",
            "tagline": "Reinvent your payments",
            "description": "The next-generation payment platform for modern businesses",
            "heroTitle": "Simplify your financial transactions",
            "heroSubtitle": "FinTechPro gives you a secure, intuitive platform to run all your online payments",
            "features": [
                {"title": "Bank-grade security", "description": "Bank-level encryption on every transaction"},
                {"title": "Simple API", "description": "Integrate in a few lines of code"},
                {"title": "Advanced analytics", "description": "Detailed dashboards to track your performance"}
            ],
            "cta": "Start for free",
            "theme": "fintech"
        },
        "Excellent! A fintech reinventing payments. I generated a first version of your landing page "
        "focused on security and easy integration. Would you like me to change anything?"
    ),
    (
        ("saas", "software", "productivity"),
        {
            "companyName": "ProductiFlow",
            "tagline": "Boost your productivity",
            "description": "The SaaS tool that transforms the way you work",
            "heroTitle": "Optimize your workflow",
            "heroSubtitle": "ProductiFlow brings all your productivity tools together in one simple, powerful interface",
            "features": [
                {"title": "Centralization", "description": "All your tools in one place"},
                {"title": "Automation", "description": "Automate your repetitive tasks"},
                {"title": "Collaboration", "description": "Work as a team in real time"}
            ],
            "cta": "Try it free",
            "theme": "saas"
        },
        "Perfect! A productivity SaaS is a strong market. I created a landing page that highlights "
        "efficiency and collaboration. What do you think of the positioning?"
    ),
    (
        ("e-commerce", "ecommerce", "shop", "store"),
        {
            "companyName": "ShopFlow",
            "tagline": "Your store, everywhere",
            "description": "Build and run your online store in a few clicks",
            "heroTitle": "Launch your online store",
            "heroSubtitle": "ShopFlow gives you every tool to create, manage and grow your e-commerce business",
            "features": [
                {"title": "Customizable templates", "description": "Professional designs that fit your brand"},
                {"title": "Inventory management", "description": "Track your stock in real time"},
                {"title": "Secure checkout", "description": "Accept every payment method"}
            ],
            "cta": "Create my store",
            "theme": "ecommerce"
        },
        "Great! An e-commerce platform, the timing is perfect. I designed a landing page that puts "
        "easy setup and complete management front and center. Want to adjust the main message?"
    ),
]

FOLLOW_UP = (
    "Thanks for the details! Could you tell me more about your industry, your unique value "
    "proposition and your target users? The more you share, the better I can tailor your landing page."
)


class ScriptedCompletionGateway(CompletionGateway):
    """Canned replies keyed on words in the latest user turn"""

    provider = "scripted"

    def __init__(self, delay_seconds: float = 0.0):
        super().__init__("scripted")
        self.delay_seconds = delay_seconds

    async def complete(self, system_prompt: str, history: History) -> str:
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)

        last_user = next(
            (turn["content"] for turn in reversed(history) if turn["role"] == "user"),
            ""
        )
        message = last_user.lower()

        for keywords, page, reply in SCRIPTS:
            if any(kw in message for kw in keywords):
                logger.info("Scripted landing page selected", theme=page["theme"])
                return f"{SENTINEL}{json.dumps(page)}\n\n{reply}"

        return FOLLOW_UP
