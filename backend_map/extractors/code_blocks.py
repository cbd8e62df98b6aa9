"""
Third-party integration and sensitive-operation matcher for backend_map.

Every non-empty, non-comment line is tested against:

- PROVIDER_PATTERNS, an ordered provider -> patterns table. The first
  provider with a matching pattern tags the line as ``third_party``.
- OPERATION_DETECTORS (database, authentication, file system). Each one
  that matches adds its own fact, so a line can carry a provider tag and
  one or more operation tags at the same time.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Optional

from backend_map.extractors.base import BaseMatcher
from backend_map.models import BlockKind, CodeBlockFact, Importance

if TYPE_CHECKING:
    from backend_map.models import ScannedFile


def _compile(*patterns: str) -> tuple[re.Pattern, ...]:
    return tuple(re.compile(pattern, re.IGNORECASE) for pattern in patterns)


PROVIDER_PATTERNS: tuple[tuple[str, tuple[re.Pattern, ...]], ...] = (
    ("supabase", _compile(
        r"supabase\.from\(",
        r"createClient.*supabase",
        r"@supabase",
        r"supabaseUrl|supabaseKey",
        r"\.insert\(|\.select\(|\.update\(|\.delete\(",
        r"\.auth\.signIn|\.auth\.signUp|\.auth\.signOut",
        r"SUPABASE_URL|SUPABASE_ANON_KEY",
    )),
    ("openai", _compile(
        r"openai\.",
        r"new OpenAI",
        r"chat\.completions\.create",
        r"gpt-|text-davinci",
    )),
    ("anthropic", _compile(
        r"anthropic\.",
        r"new Anthropic",
        r"claude-",
        r"@anthropic-ai",
    )),
    ("slack", _compile(
        r"slack.*api",
        r"WebClient.*slack",
        r"slack.*webhook",
        r"xoxb-|xoxp-",
    )),
    ("discord", _compile(
        r"discord\.js",
        r"new Client.*discord",
        r"\.send\(.*embed",
        r"discord.*webhook",
    )),
    ("google", _compile(
        r"googleapis",
        r"google\.auth",
        r"sheets\.spreadsheets",
        r"drive\.files",
    )),
    ("github", _compile(
        r"octokit",
        r"github.*api",
        r"repos\.get",
        r"\.git.*api",
    )),
    ("stripe", _compile(
        r"stripe\.",
        r"new Stripe",
        r"paymentIntents",
        r"sk_test_|sk_live_",
    )),
    ("twilio", _compile(
        r"twilio\.",
        r"new Twilio",
        r"messages\.create",
        r"AC[a-z0-9]{32}",
    )),
    ("sendgrid", _compile(
        r"sendgrid",
        r"@sendgrid/mail",
        r"sgMail\.send",
        r"SG\.[A-Za-z0-9_-]{69}",
    )),
    ("aws", _compile(
        r"aws-sdk",
        r"new AWS\.",
        r"\.s3\.",
        r"\.lambda\.",
        r"AKIA[0-9A-Z]{16}",
        r"\bboto3\b",
    )),
    ("azure", _compile(
        r"@azure",
        r"azure.*client",
        r"\.azure\.",
        r"DefaultAzureCredential",
    )),
    ("gcp", _compile(
        r"google-cloud",
        r"\.googleapis\.com",
        r"gcloud",
        r"service-account",
    )),
    ("firebase", _compile(
        r"firebase",
        r"initializeApp",
        r"firestore",
        r"\.collection\(",
    )),
    ("mongodb", _compile(
        r"mongodb",
        r"mongoose",
        r"\.connect.*mongo",
        r"new MongoClient",
    )),
    ("postgresql", _compile(
        r"pg\.|postgres",
        r"new Pool.*postgres",
        r"\.query\(",
        r"SELECT.*FROM",
    )),
    ("mysql", _compile(
        r"mysql",
        r"createConnection.*mysql",
        r"\.query.*SELECT",
        r"mysql://",
    )),
    ("redis", _compile(
        r"redis",
        r"createClient.*redis",
        r"\.get\(|\.set\(",
        r"redis://",
    )),
    ("prisma", _compile(
        r"@prisma/client",
        r"new PrismaClient",
        r"prisma\.",
        r"\.findMany\(|\.create\(",
    )),
    ("drizzle", _compile(
        r"drizzle-orm",
        r"drizzle\(",
        r"\.select\(\)\.from\(",
        r"eq\(|like\(|gt\(",
    )),
    ("express", _compile(
        r"express\(\)",
        r"app\.get\(|app\.post\(",
        r"req\.|res\.",
        r"middleware",
    )),
    ("fastify", _compile(
        r"fastify\(",
        r"\.register\(",
        r"reply\.send",
        r"fastify.*plugin",
    )),
    ("koa", _compile(
        r"new Koa",
        r"ctx\.",
        r"koa.*router",
        r"\.use\(.*koa",
    )),
    ("nestjs", _compile(
        r"@nestjs",
        r"@Controller\(|@Get\(|@Post\(",
        r"@Injectable\(",
        r"NestFactory\.create",
    )),
)

DATABASE_PATTERNS = _compile(
    r"SELECT.*FROM",
    r"INSERT.*INTO",
    r"UPDATE.*SET",
    r"DELETE.*FROM",
    r"\.find\(|\.findOne\(|\.findMany\(",
    r"\.create\(|\.update\(|\.delete\(",
    r"\.query\(",
    r"\.exec\(\)",
)

AUTH_PATTERNS = _compile(
    r"jwt\.|jsonwebtoken",
    r"passport\.",
    r"auth|authenticate|authorize",
    r"verify.*token",
    r"login|logout|signin|signup",
    r"bcrypt|hash.*password",
)

FILE_PATTERNS = _compile(
    r"fs\.|filesystem",
    r"readFile|writeFile|createFile",
    r"\.read\(|\.write\(|\.create\(",
    r"multer|upload",
    r"path\.join|path\.resolve",
)

# (kind, patterns, description, importance), tested in this order
OPERATION_DETECTORS: tuple[tuple[str, tuple[re.Pattern, ...], str, str], ...] = (
    (BlockKind.DB_QUERY, DATABASE_PATTERNS, "Database operation", Importance.HIGH),
    (BlockKind.AUTH_CHECK, AUTH_PATTERNS, "Authentication check", Importance.CRITICAL),
    (BlockKind.FILE_OPERATION, FILE_PATTERNS, "File system operation", Importance.MEDIUM),
)

# Importance of a third-party line, first rule that applies wins.
# A rule is (importance, keywords found in the line, providers); either
# collection may be empty.
IMPORTANCE_RULES: tuple[tuple[str, tuple[str, ...], frozenset[str]], ...] = (
    (Importance.CRITICAL, ("stripe", "auth", "jwt", "passport"), frozenset()),
    (Importance.HIGH, (), frozenset({"supabase", "mongodb", "postgresql", "mysql", "prisma", "drizzle"})),
    (Importance.MEDIUM, (), frozenset({"slack", "discord", "sendgrid", "twilio", "aws", "gcp"})),
)

COMMENT_PREFIXES = ("//", "*", "#", "/*")


def match_provider(line: str) -> Optional[str]:
    """Return the first provider whose patterns match line, or None."""
    for provider, patterns in PROVIDER_PATTERNS:
        if any(pattern.search(line) for pattern in patterns):
            return provider
    return None


def provider_importance(provider: str, line: str) -> str:
    """
    Rank a third-party line.

    Args:
        provider: Provider the line was attributed to.
        line: The stripped source line.

    Returns:
        Importance value from IMPORTANCE_RULES, Importance.LOW if none apply.
    """
    lowered = line.lower()
    for importance, keywords, providers in IMPORTANCE_RULES:
        if any(keyword in lowered for keyword in keywords) or provider in providers:
            return importance
    return Importance.LOW


def is_comment_or_blank(line: str) -> bool:
    return not line or line.startswith(COMMENT_PREFIXES)


class CodeBlockMatcher(BaseMatcher):
    """Tag integration and sensitive-operation lines."""

    name = "code_blocks"

    def apply(self, scanned: ScannedFile) -> None:
        scanned.code_blocks = extract_code_blocks(scanned.content, scanned.path)


def extract_code_blocks(content: str, path: str) -> list[CodeBlockFact]:
    """
    Tag lines of a file.

    Args:
        content: File text.
        path: Relative path, used for ids.

    Returns:
        CodeBlockFacts in line order; within a line, the provider tag comes
        first, followed by operation tags in OPERATION_DETECTORS order.
    """
    blocks: list[CodeBlockFact] = []

    def add(kind: str, line_number: int, code: str, description: str, importance: str, provider=None):
        blocks.append(CodeBlockFact(
            id=f"{path}-block-{len(blocks)}",
            kind=kind,
            start_line=line_number,
            end_line=line_number,
            code=code,
            description=description,
            importance=importance,
            provider=provider,
        ))

    for index, raw_line in enumerate(content.split("\n")):
        line = raw_line.strip()
        if is_comment_or_blank(line):
            continue
        line_number = index + 1

        provider = match_provider(line)
        if provider is not None:
            add(
                BlockKind.THIRD_PARTY, line_number, line, f"{provider} integration",
                provider_importance(provider, line), provider,
            )

        for kind, patterns, description, importance in OPERATION_DETECTORS:
            if any(pattern.search(line) for pattern in patterns):
                add(kind, line_number, line, description, importance)

    return blocks
