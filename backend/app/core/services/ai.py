import json
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger()


class AIProviderError(Exception):
    """Raised when every configured provider failed to answer"""


def _clamp(value: Any, default: float = 0) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        number = default
    return max(0.0, min(100.0, number))


def _string_list(value: Any, limit: Optional[int] = None) -> List[str]:
    if not isinstance(value, list):
        return []
    items = [str(item) for item in value]
    return items[:limit] if limit is not None else items


class AIService:
    """Resume analysis and interview coaching backed by OpenRouter and OpenAI"""

    def __init__(self):
        self.openrouter_client = None
        if settings.OPENROUTER_API_KEY:
            self.openrouter_client = AsyncOpenAI(
                api_key=settings.OPENROUTER_API_KEY,
                base_url=settings.OPENROUTER_BASE_URL,
                default_headers={
                    "HTTP-Referer": settings.FRONTEND_URL,
                    "X-Title": settings.SITE_NAME,
                },
            )

        self.openai_client = None
        if settings.OPENAI_API_KEY:
            self.openai_client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY)

        # Set primary client (prefer OpenRouter, fallback to OpenAI)
        self.client = self.openrouter_client or self.openai_client

        self.openrouter_model = settings.OPENROUTER_MODEL
        self.openai_model = settings.OPENAI_MODEL

    def _providers(self) -> List[tuple]:
        providers = []
        if self.openrouter_client:
            providers.append(("openrouter", self.openrouter_client, self.openrouter_model))
        if self.openai_client:
            providers.append(("openai", self.openai_client, self.openai_model))
        return providers

    def get_available_providers(self) -> List[Dict[str, Any]]:
        """Describe each provider and whether it is configured"""
        return [
            {
                "name": "openrouter",
                "available": self.openrouter_client is not None,
                "model": self.openrouter_model,
            },
            {
                "name": "openai",
                "available": self.openai_client is not None,
                "model": self.openai_model,
            },
        ]

    async def _make_completion(self, messages: List[Dict], **kwargs) -> tuple:
        """
        Try each configured provider in order.
        Returns (provider_name, text). Raises AIProviderError when all fail.
        """
        providers = self._providers()
        if not providers:
            raise AIProviderError("No AI providers available")

        last_error = None
        for name, client, model in providers:
            try:
                response = await client.chat.completions.create(
                    model=model, messages=messages, **kwargs
                )
                content = response.choices[0].message.content
                if not content:
                    raise ValueError(f"Empty response from {name}")
                return name, content
            except Exception as e:
                logger.warning(f"AI provider {name} failed: {e}")
                last_error = e

        raise AIProviderError(
            f"All AI providers failed. Please try again later. ({last_error})"
        )

    @staticmethod
    def extract_json(text: str) -> Any:
        """Parse a JSON object or array out of a reply that may be fenced"""
        cleaned = re.sub(r"```(?:json)?", "", text).strip()
        try:
            return json.loads(cleaned)
        except json.JSONDecodeError:
            pass

        starts = [i for i in (cleaned.find("{"), cleaned.find("[")) if i != -1]
        if not starts:
            raise ValueError("No valid JSON found in response")
        start = min(starts)
        closing = "}" if cleaned[start] == "{" else "]"
        end = cleaned.rfind(closing)
        if end <= start:
            raise ValueError("No valid JSON found in response")
        return json.loads(cleaned[start : end + 1])

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    # ---------------------------
    # Resume analysis
    # ---------------------------
    async def analyze_resume(
        self,
        text: str,
        target_role: Optional[str] = None,
        target_industry: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Score a resume. With no provider configured a sample analysis is
        returned; when providers are configured but all fail AIProviderError
        propagates.
        """
        if not self.client:
            logger.warning("No AI providers available, returning sample analysis")
            return self._get_sample_resume_analysis()

        prompt = f"""
        Please analyze this resume and provide a comprehensive assessment in JSON format.

        RESUME CONTENT:
        {text}

        {f"TARGET ROLE: {target_role}" if target_role else ""}
        {f"TARGET INDUSTRY: {target_industry}" if target_industry else ""}

        Return JSON format:
        {{
            "overall_score": 85,
            "ats_score": 78,
            "skills_found": ["JavaScript", "Leadership"],
            "skills_gaps": ["TypeScript"],
            "strengths": ["Clear achievements"],
            "improvements": ["Add more quantified results"],
            "suggestions": {{
                "formatting": ["Use consistent bullet points"],
                "content": ["Add more metrics"],
                "keywords": ["Agile methodology"]
            }}
        }}

        Scores are 0-100. Return ONLY the JSON object.
        """

        provider, reply = await self._make_completion(
            messages=[
                {
                    "role": "system",
                    "content": "You are an expert resume analyst. Provide analysis in valid JSON format only.",
                },
                {"role": "user", "content": prompt},
            ],
            temperature=0.3,
            max_tokens=2000,
        )
        try:
            raw = self.extract_json(reply)
        except ValueError as e:
            raise AIProviderError(f"Unreadable analysis from {provider}: {e}")

        return {
            **self.format_resume_analysis(raw),
            "provider": provider,
            "analysis_date": datetime.now(timezone.utc),
        }

    @staticmethod
    def format_resume_analysis(raw: Dict[str, Any]) -> Dict[str, Any]:
        suggestions = raw.get("suggestions") or {}
        if not isinstance(suggestions, dict):
            suggestions = {}
        return {
            "overall_score": _clamp(raw.get("overall_score", raw.get("overallScore"))),
            "ats_score": _clamp(raw.get("ats_score", raw.get("atsScore"))),
            "skills_found": _string_list(raw.get("skills_found", raw.get("skillsFound")), 20),
            "skills_gaps": _string_list(raw.get("skills_gaps", raw.get("skillsGaps")), 15),
            "strengths": _string_list(raw.get("strengths"), 10),
            "improvements": _string_list(raw.get("improvements"), 10),
            "suggestions": {
                "formatting": _string_list(suggestions.get("formatting"), 5),
                "content": _string_list(suggestions.get("content"), 8),
                "keywords": _string_list(suggestions.get("keywords"), 10),
            },
        }

    # ---------------------------
    # Interview coaching
    # ---------------------------
    async def analyze_response(
        self, spoken_text: str, question: str, target_role: str, industry: str
    ) -> Dict[str, Any]:
        """Score a spoken answer; falls back to a neutral analysis on failure"""
        prompt = f"""
        Analyze this interview response for real-time coaching.

        Question: "{question}"
        Response: "{spoken_text}"
        Target Role: {target_role}
        Industry: {industry}

        Return JSON format:
        {{
            "confidence": 85,
            "clarity": 90,
            "pace": 75,
            "keyword_relevance": 80,
            "suggestions": ["immediate tip"],
            "strengths": ["what they did well"],
            "improvement_areas": ["what to improve"]
        }}
        """
        try:
            provider, reply = await self._make_completion(
                messages=[
                    {"role": "system", "content": "You are an expert interview coach."},
                    {"role": "user", "content": prompt},
                ],
                temperature=0.3,
                max_tokens=1024,
            )
            raw = self.extract_json(reply)
            if not isinstance(raw, dict):
                raise ValueError("Analysis is not an object")
            analysis = {
                "confidence": _clamp(raw.get("confidence", 75), 75),
                "clarity": _clamp(raw.get("clarity", 75), 75),
                "pace": _clamp(raw.get("pace", 75), 75),
                "keyword_relevance": _clamp(raw.get("keyword_relevance", 70), 70),
                "suggestions": _string_list(raw.get("suggestions")),
                "strengths": _string_list(raw.get("strengths")),
                "improvement_areas": _string_list(raw.get("improvement_areas")),
            }
        except Exception as e:
            logger.error(f"Real-time analysis failed: {e}")
            provider, analysis = "fallback", self._get_fallback_analysis()

        return {
            "success": True,
            "data": analysis,
            "timestamp": self._now(),
            "provider": provider,
        }

    async def instant_coaching_tips(
        self, current_response: str, context: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        context = context or {}
        prompt = f"""
        You are an expert interview coach providing real-time guidance.

        Current Response: "{current_response}"
        Target Role: {context.get("target_role") or "General"}
        Industry: {context.get("industry") or "Technology"}

        Provide 3 immediate, actionable coaching tips.
        Return only a JSON array of 3 short tips: ["tip1", "tip2", "tip3"]
        """
        try:
            provider, reply = await self._make_completion(
                messages=[{"role": "user", "content": prompt}],
                temperature=0.7,
                max_tokens=300,
            )
            tips = self.extract_json(reply)
            if not isinstance(tips, list) or not tips:
                raise ValueError("Tips are not a list")
            tips = [str(tip) for tip in tips[:3]]
        except Exception as e:
            logger.error(f"Coaching tips generation failed: {e}")
            provider, tips = "fallback", self._get_fallback_tips(context)

        return {
            "success": True,
            "tips": tips,
            "timestamp": self._now(),
            "provider": provider,
        }

    async def generate_interview_questions(
        self,
        target_role: str,
        target_industry: str,
        difficulty: str = "medium",
        question_types: Optional[List[str]] = None,
        count: int = 5,
    ) -> Dict[str, Any]:
        question_types = question_types or ["behavioral", "technical", "situational"]
        prompt = f"""
        Generate {count} personalized interview questions for a {target_role}
        position in the {target_industry} industry.

        Include a mix of: {", ".join(question_types)}
        Difficulty level: {difficulty}

        Return a JSON array where each item is:
        {{
            "question": "The interview question text",
            "type": "behavioral",
            "difficulty": "{difficulty}",
            "expected_duration": 120,
            "hints": ["hint"],
            "tags": ["tag"],
            "follow_up_questions": ["optional follow-up"]
        }}
        """
        try:
            provider, reply = await self._make_completion(
                messages=[
                    {"role": "system", "content": "You are an experienced interviewer."},
                    {"role": "user", "content": prompt},
                ],
                temperature=0.7,
                max_tokens=2048,
            )
            raw = self.extract_json(reply)
            if isinstance(raw, dict):
                raw = raw.get("questions")
            if not isinstance(raw, list) or not raw:
                raise ValueError("Questions are not a list")
            questions = [
                {
                    "id": f"ai-{index + 1}",
                    "question": str(item.get("question") or "Tell me about a recent project."),
                    "type": item.get("type") or "behavioral",
                    "difficulty": item.get("difficulty") or difficulty,
                    "expected_duration": item.get("expected_duration") or 120,
                    "hints": _string_list(item.get("hints")),
                    "tags": _string_list(item.get("tags")),
                    "follow_up_questions": _string_list(item.get("follow_up_questions")),
                    "role": target_role,
                    "industry": target_industry,
                }
                for index, item in enumerate(raw[:count])
                if isinstance(item, dict)
            ]
            if not questions:
                raise ValueError("No usable questions")
        except Exception as e:
            logger.error(f"Question generation failed: {e}")
            provider = "fallback"
            questions = self._get_fallback_questions(
                target_role, target_industry, difficulty, count
            )

        return {
            "success": True,
            "questions": questions,
            "count": len(questions),
            "timestamp": self._now(),
            "provider": provider,
        }

    async def generate_follow_up(
        self,
        original_question: str,
        user_response: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        context = context or {}
        prompt = f"""
        As an expert interviewer, generate one thoughtful follow-up question.

        Original Question: "{original_question}"
        Candidate's Response: "{user_response}"
        Role: {context.get("target_role") or "General"}
        Industry: {context.get("industry") or "Technology"}

        Return only the follow-up question, no additional text.
        """
        try:
            provider, reply = await self._make_completion(
                messages=[{"role": "user", "content": prompt}],
                temperature=0.8,
                max_tokens=200,
            )
            follow_up = re.sub(r"```(?:\w+)?", "", reply).strip()
            if not follow_up:
                raise ValueError("Empty follow-up")
        except Exception as e:
            logger.error(f"Follow-up generation failed: {e}")
            provider = "fallback"
            follow_up = "Can you elaborate on that with a specific example?"

        return {
            "success": True,
            "follow_up_question": follow_up,
            "timestamp": self._now(),
            "provider": provider,
        }

    # ---------------------------
    # Fallbacks
    # ---------------------------
    def _get_sample_resume_analysis(self) -> Dict[str, Any]:
        return {
            "overall_score": 75,
            "ats_score": 68,
            "skills_found": ["JavaScript", "React", "Node.js", "Git", "Problem Solving"],
            "skills_gaps": ["TypeScript", "AWS", "Docker", "Kubernetes", "Testing"],
            "strengths": [
                "Clear work experience progression",
                "Quantified achievements in previous roles",
                "Good mix of technical and soft skills",
            ],
            "improvements": [
                "Add more specific metrics and numbers",
                "Include relevant industry certifications",
                "Add more recent project examples",
            ],
            "suggestions": {
                "formatting": [
                    "Use consistent bullet point style throughout",
                    "Use a clean, ATS-friendly font",
                ],
                "content": [
                    "Add percentage improvements or amounts to achievements",
                    "Mention specific technologies used in each role",
                ],
                "keywords": ["Agile development", "Cross-functional collaboration"],
            },
            "provider": "sample",
            "analysis_date": datetime.now(timezone.utc),
        }

    def _get_fallback_analysis(self) -> Dict[str, Any]:
        return {
            "confidence": 75,
            "clarity": 78,
            "pace": 72,
            "keyword_relevance": 70,
            "suggestions": [
                "Provide more specific examples from your experience",
                "Use quantifiable results to strengthen your answer",
                "Structure your response using the STAR method",
            ],
            "strengths": ["Clear communication", "Professional tone"],
            "improvement_areas": ["Add specific metrics", "Include more details"],
        }

    def _get_fallback_tips(self, context: Dict[str, Any]) -> List[str]:
        role = context.get("target_role") or "your target role"
        return [
            f"Mention specific achievements related to {role}",
            "Use the STAR method to structure your response",
            "Include quantifiable results and metrics",
        ]

    def _get_fallback_questions(
        self, target_role: str, target_industry: str, difficulty: str, count: int
    ) -> List[Dict[str, Any]]:
        templates = [
            (
                f"Tell me about yourself and why you're interested in a {target_role} position.",
                "behavioral",
                ["Start with your professional background", "End with your career goals"],
            ),
            (
                f"Describe a challenging project you worked on in {target_industry}. How did you handle it?",
                "situational",
                ["Use the STAR method", "Focus on your problem-solving process"],
            ),
            (
                "Walk me through a technical decision you made and the trade-offs involved.",
                "technical",
                ["Name the alternatives you considered", "Explain how you measured success"],
            ),
            (
                "Tell me about a time you disagreed with a teammate. What happened?",
                "behavioral",
                ["Stay factual", "Describe the outcome and what you learned"],
            ),
            (
                "How do you prioritize when several deadlines collide?",
                "situational",
                ["Give a concrete example", "Mention how you communicated"],
            ),
        ]
        questions = []
        for index in range(count):
            text, kind, hints = templates[index % len(templates)]
            questions.append(
                {
                    "id": f"fallback-{index + 1}",
                    "question": text,
                    "type": kind,
                    "difficulty": difficulty,
                    "expected_duration": 120,
                    "hints": hints,
                    "tags": [kind],
                    "follow_up_questions": [],
                    "role": target_role,
                    "industry": target_industry,
                }
            )
        return questions


ai_service = AIService()
