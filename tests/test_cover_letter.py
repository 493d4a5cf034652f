import sys
import unittest
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import patch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from neujobscan.core.errors import ValidationError  # noqa: E402
from neujobscan.normalize.job_parser import parse_job  # noqa: E402
from neujobscan.normalize.resume_parser import parse_resume  # noqa: E402
from neujobscan.schemas.job import JobSkill, ParsedJobData  # noqa: E402
from neujobscan.schemas.resume import ParsedResumeData, PersonalInfo, Skill, WorkExperience  # noqa: E402
from neujobscan.services.cover_letter import TEMPLATES, generate_cover_letter  # noqa: E402
from neujobscan.services.reports import render_cover_letter  # noqa: E402
from tests.fixtures import JOB_TEXT, RESUME_TEXT  # noqa: E402

_NOW = datetime(2026, 3, 1, tzinfo=timezone.utc)


def _candidate():
    return ParsedResumeData(
        personal_info=PersonalInfo(name="Sam Lee"),
        experience=[
            WorkExperience(
                id="exp-1",
                company="Initech",
                position="Data Engineer",
                current=True,
                achievements=["Reduced pipeline cost by 30%"],
            )
        ],
        skills=[Skill(id="skill-1", name="Python"), Skill(id="skill-2", name="SQL")],
    )


def _posting():
    return ParsedJobData(
        title="Analytics Engineer",
        company="Globex",
        responsibilities=["Build reliable data models"],
        skills=[
            JobSkill(name="Python"),
            JobSkill(name="SQL"),
            JobSkill(name="Kubernetes"),
            JobSkill(name="Tableau", required=False),
        ],
    )


class CoverLetterGenerationTests(unittest.TestCase):
    def test_professional_letter_cites_only_evidenced_skills(self):
        letter = generate_cover_letter(_candidate(), _posting(), now=_NOW)
        self.assertEqual(letter.template, "professional")
        self.assertEqual(letter.highlighted_skills, ["Python", "SQL"])
        self.assertEqual(
            letter.paragraphs[0],
            "I am writing to express my strong interest in the Analytics Engineer position at Globex.",
        )
        self.assertIn("Data Engineer at Initech", letter.content)
        self.assertIn("reduced pipeline cost by 30%", letter.content)
        self.assertIn("developing expertise in Kubernetes", letter.content)
        self.assertNotIn("Tableau", letter.content)
        self.assertTrue(letter.content.startswith("Dear Hiring Manager,"))
        self.assertTrue(letter.content.endswith("Sincerely,\nSam Lee"))
        self.assertEqual(letter.generated_at, _NOW)
        self.assertEqual(letter.generation_mode, "heuristic")

    def test_each_template_has_its_own_voice(self):
        contents = {}
        for name in TEMPLATES:
            letter = generate_cover_letter(_candidate(), _posting(), name, now=_NOW)
            self.assertEqual(letter.template, name)
            self.assertIn("Globex", letter.content)
            self.assertTrue(letter.content.endswith(f"{TEMPLATES[name].signoff}\nSam Lee"))
            contents[name] = letter.content
        self.assertEqual(len(set(contents.values())), len(TEMPLATES))
        self.assertTrue(contents["modern"].startswith("Hi there,"))
        self.assertTrue(contents["creative"].startswith("Hello there,"))

    def test_hiring_manager_and_missing_name(self):
        resume = _candidate().model_copy(update={"personal_info": PersonalInfo()})
        letter = generate_cover_letter(resume, _posting(), "executive", hiring_manager="Dana Smith")
        self.assertTrue(letter.content.startswith("Dear Dana Smith,"))
        self.assertTrue(letter.content.endswith("Respectfully,\nYour Name"))

    def test_parsed_fixture_letter(self):
        letter = generate_cover_letter(parse_resume(RESUME_TEXT), parse_job(JOB_TEXT), "modern")
        self.assertIn("Python", letter.highlighted_skills)
        self.assertNotIn("Kubernetes", letter.highlighted_skills)
        self.assertIn("Senior Backend Engineer at Acme Corp", letter.content)
        self.assertTrue(letter.content.endswith("Best regards,\nJane Doe"))
        self.assertEqual(letter.word_count, len(letter.content.split()))

    def test_unknown_template_is_rejected(self):
        with self.assertRaises(ValidationError):
            generate_cover_letter(_candidate(), _posting(), "poetic")

    def test_model_paragraphs_replace_the_body_only_when_well_formed(self):
        rewritten = {"paragraphs": ["First tailored paragraph.", "Second tailored paragraph."]}
        with patch("neujobscan.services.cover_letter.json_completion", return_value=rewritten):
            letter = generate_cover_letter(_candidate(), _posting(), use_llm=True)
        self.assertEqual(letter.generation_mode, "llm")
        self.assertEqual(letter.paragraphs[1:], rewritten["paragraphs"])
        self.assertTrue(letter.paragraphs[0].startswith("I am writing"))

        with patch("neujobscan.services.cover_letter.json_completion", return_value={"paragraphs": ["Only one."]}):
            fallback = generate_cover_letter(_candidate(), _posting(), use_llm=True)
        self.assertEqual(fallback.generation_mode, "heuristic")
        self.assertNotIn("Only one.", fallback.content)

    def test_serialized_letter_exposes_content(self):
        payload = generate_cover_letter(_candidate(), _posting(), now=_NOW).model_dump(by_alias=True)
        self.assertIn("content", payload)
        self.assertIn("wordCount", payload)
        self.assertIn("highlightedSkills", payload)


class CoverLetterExportTests(unittest.TestCase):
    def test_word_export_uses_crlf(self):
        body, media_type, filename = render_cover_letter("Dear Team,\n\nThanks", "word")
        self.assertEqual(body, b"Dear Team,\r\n\r\nThanks")
        self.assertEqual(media_type, "application/msword")
        self.assertEqual(filename, "cover-letter.doc")

    def test_html_export_escapes_content(self):
        body, media_type, _ = render_cover_letter("<script>x</script>", "html")
        self.assertIn(b"&lt;script&gt;", body)
        self.assertNotIn(b"<script>", body)
        self.assertTrue(media_type.startswith("text/html"))

    def test_blank_content_and_unknown_format_are_rejected(self):
        with self.assertRaises(ValidationError):
            render_cover_letter("  \n ", "txt")
        with self.assertRaises(ValidationError):
            render_cover_letter("Dear Team", "pdf")


if __name__ == "__main__":
    unittest.main()
