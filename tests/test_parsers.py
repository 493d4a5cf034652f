import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from neujobscan.core.errors import ParsingError  # noqa: E402
from neujobscan.normalize.job_parser import parse_job  # noqa: E402
from neujobscan.normalize.resume_parser import parse_resume  # noqa: E402
from tests.fixtures import JOB_TEXT, RESUME_TEXT  # noqa: E402


class ResumeParserTests(unittest.TestCase):
    def test_contact_details_are_extracted(self):
        resume = parse_resume(RESUME_TEXT)
        self.assertEqual(resume.personal_info.name, "Jane Doe")
        self.assertEqual(resume.personal_info.email, "jane.doe@example.com")
        self.assertEqual(resume.personal_info.phone, "+1 415 555 0100")
        self.assertEqual(resume.personal_info.location, "San Francisco, CA")
        self.assertEqual(resume.summary, "Backend engineer focused on reliable APIs.")

    def test_experience_entries_keep_roles_dates_and_bullets(self):
        resume = parse_resume(RESUME_TEXT)
        self.assertEqual(len(resume.experience), 2)
        latest, earlier = resume.experience
        self.assertEqual(latest.position, "Senior Software Engineer")
        self.assertEqual(latest.company, "Acme Corp")
        self.assertTrue(latest.current)
        self.assertIsNone(latest.end_date)
        self.assertEqual(len(latest.achievements), 2)
        self.assertEqual(earlier.position, "Software Engineer")
        self.assertEqual(earlier.company, "Beta Labs")
        self.assertEqual(earlier.start_date, "2016")
        self.assertEqual(earlier.end_date, "2019")

    def test_education_and_skills(self):
        resume = parse_resume(RESUME_TEXT)
        self.assertEqual(len(resume.education), 1)
        education = resume.education[0]
        self.assertEqual(education.degree, "B.S. in Computer Science")
        self.assertEqual(education.institution, "Stanford University")
        self.assertEqual(education.field, "Computer Science")
        self.assertEqual(
            [skill.name for skill in resume.skills],
            ["Python", "Django", "AWS", "Docker", "PostgreSQL", "Redis"],
        )
        self.assertEqual(resume.skills[0].category, "language")

    def test_skills_are_detected_without_a_skills_section(self):
        resume = parse_resume("John Smith\nBuilt dashboards in Tableau and automated reports with Python.")
        names = {skill.name for skill in resume.skills}
        self.assertIn("Tableau", names)
        self.assertIn("Python", names)

    def test_empty_or_unreadable_text_raises_parsing_error(self):
        with self.assertRaises(ParsingError) as ctx:
            parse_resume("   \n  ")
        self.assertEqual(ctx.exception.status_code, 422)
        with self.assertRaises(ParsingError) as ctx:
            parse_resume("1234 5678 ###")
        self.assertEqual(ctx.exception.extra_payload()["text"], "1234 5678 ###")


class JobParserTests(unittest.TestCase):
    def test_header_fields(self):
        job = parse_job(JOB_TEXT)
        self.assertEqual(job.title, "Senior Backend Engineer")
        self.assertEqual(job.company, "Acme Corp")
        self.assertEqual(job.location, "San Francisco, CA")
        self.assertEqual(job.employment_type, "full-time")
        self.assertEqual(job.experience_level, "senior")
        self.assertIsNotNone(job.salary)
        self.assertEqual(job.salary.min, 140000)
        self.assertEqual(job.salary.max, 170000)
        self.assertEqual(job.salary.currency, "USD")

    def test_sections_and_skill_requirements(self):
        job = parse_job(JOB_TEXT)
        self.assertEqual(len(job.requirements), 3)
        self.assertEqual(job.preferred_qualifications, ["Kubernetes experience"])
        self.assertEqual(len(job.responsibilities), 2)
        required = {skill.name: skill.required for skill in job.skills}
        self.assertTrue(required["Python"])
        self.assertTrue(required["AWS"])
        self.assertTrue(required["Docker"])
        self.assertFalse(required["Kubernetes"])
        self.assertFalse(required["PostgreSQL"])
        self.assertIn("Python", job.keywords)

    def test_job_id_is_a_stable_content_digest(self):
        self.assertEqual(parse_job(JOB_TEXT).id, parse_job(JOB_TEXT).id)
        self.assertTrue(parse_job(JOB_TEXT).id.startswith("job_"))

    def test_loose_text_still_yields_requirements(self):
        job = parse_job(
            "Acme is hiring a data analyst. You must have strong SQL skills. Tableau is a plus."
        )
        self.assertEqual(job.company, "Acme")
        skills = {skill.name: skill.required for skill in job.skills}
        self.assertTrue(skills["SQL"])
        self.assertFalse(skills["Tableau"])


if __name__ == "__main__":
    unittest.main()
