import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from pydantic import ValidationError as PydanticValidationError  # noqa: E402

from neujobscan.core.errors import ValidationError  # noqa: E402
from neujobscan.normalize.job_parser import parse_job  # noqa: E402
from neujobscan.normalize.resume_parser import parse_resume  # noqa: E402
from neujobscan.schemas.job import JobSkill, ParsedJobData  # noqa: E402
from neujobscan.schemas.match import ScoreWeights, weighted_overall  # noqa: E402
from neujobscan.schemas.resume import Education, ParsedResumeData, Skill, WorkExperience  # noqa: E402
from neujobscan.scoring.matcher import create_match, education_score, match_keywords  # noqa: E402
from neujobscan.scoring.rewrite import generate_suggestions, section_score  # noqa: E402
from neujobscan.scoring.skill_gaps import compute_skill_gaps  # noqa: E402
from tests.fixtures import JOB_TEXT, RESUME_TEXT  # noqa: E402


def _resume(*skill_names, **extra):
    skills = [Skill(id=f"skill-{index}", name=name) for index, name in enumerate(skill_names, start=1)]
    return ParsedResumeData(skills=skills, **extra)


def _job(*skills, **extra):
    return ParsedJobData(skills=[JobSkill(name=name, required=required) for name, required in skills], **extra)


class MatcherPropertyTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.resume = parse_resume(RESUME_TEXT)
        cls.job = parse_job(JOB_TEXT)

    def test_scores_are_bounded_and_overall_is_the_weighted_sum(self):
        match = create_match(self.resume, self.job, resume_text=RESUME_TEXT)
        for score in match.category_scores().values():
            self.assertGreaterEqual(score, 0.0)
            self.assertLessEqual(score, 100.0)
        self.assertAlmostEqual(sum(match.weights.as_dict().values()), 1.0)
        self.assertEqual(match.overall_score, weighted_overall(match.category_scores(), match.weights.as_dict()))
        self.assertEqual(match.match_percentage, int(round(match.overall_score)))

    def test_matcher_is_idempotent(self):
        first = create_match(self.resume, self.job)
        second = create_match(self.resume, self.job)
        self.assertEqual(first.model_dump(), second.model_dump())
        self.assertTrue(first.id.startswith("match_"))

    def test_serialized_match_uses_camel_case_and_exposes_overall(self):
        payload = create_match(self.resume, self.job).model_dump(by_alias=True)
        self.assertIn("overallScore", payload)
        self.assertIn("matchPercentage", payload)
        self.assertIn("keywordScore", payload)

    def test_two_of_three_required_skills(self):
        resume = _resume("React", "TypeScript")
        job = _job(("React", True), ("TypeScript", True), ("AWS", True))

        match = create_match(resume, job)
        self.assertEqual(match.skill_score, 66.67)

        gaps = compute_skill_gaps(resume, job)
        missing = {entry.skill: entry.importance for entry in gaps.missing_skills}
        self.assertEqual(missing, {"AWS": "critical"})
        self.assertEqual({entry.skill for entry in gaps.skill_strengths}, {"React", "TypeScript"})

    def test_no_education_requirement_scores_full_and_redistributes_weight(self):
        resume = _resume("Python")
        job = _job(("Python", True), requirements=["Experience with Python"])
        match = create_match(resume, job)
        self.assertEqual(match.education_score, 100.0)
        self.assertEqual(match.weights.education, 0.0)
        self.assertAlmostEqual(sum(match.weights.as_dict().values()), 1.0)

    def test_missing_degree_scores_zero_when_job_requires_one(self):
        job = _job(("Python", True), requirements=["Bachelor's degree in Computer Science"])
        self.assertEqual(education_score(_resume("Python"), job).score, 0.0)

        graduate = _resume(
            "Python",
            education=[Education(id="edu-1", institution="MIT", degree="Master of Science", field="Computer Science")],
        )
        self.assertEqual(education_score(graduate, job).score, 100.0)

    def test_synonyms_count_as_exact_keyword_matches(self):
        resume = _resume("k8s", "Amazon Web Services")
        job = _job(("Kubernetes", True), keywords=["Kubernetes", "AWS", "Terraform"])
        result = match_keywords(resume, job)
        found = [entry.keyword for entry in result.exact_matches if entry.found]
        self.assertEqual(found, ["Kubernetes", "AWS"])
        self.assertEqual(result.missing_keywords, ["Terraform"])
        self.assertEqual(result.match_score, 66.67)

    def test_weights_cannot_be_mutated_after_scoring(self):
        match = create_match(self.resume, self.job)
        overall = match.overall_score
        with self.assertRaises(TypeError):
            match.weights["skill"] = 0.0
        with self.assertRaises(PydanticValidationError):
            match.weights.skill = 0.0
        self.assertEqual(match.overall_score, overall)

    def test_score_weights_reject_unknown_keys_and_bad_totals(self):
        with self.assertRaises(PydanticValidationError):
            ScoreWeights(keyword=0.2, skill=0.2, experience=0.2, education=0.2, ats=0.2, bonus=0.0)
        with self.assertRaises(PydanticValidationError):
            ScoreWeights(keyword=0.5, skill=0.5, experience=0.5, education=0.0, ats=0.0)

    def test_partial_keyword_lands_in_semantic_matches_with_its_similarity(self):
        result = match_keywords(_resume("Excel"), _job(keywords=["Advanced Excel"]))
        self.assertEqual(len(result.semantic_matches), 1)
        entry = result.semantic_matches[0]
        self.assertEqual(entry.job_term, "Advanced Excel")
        self.assertEqual(entry.resume_term, "Excel")
        self.assertEqual(entry.similarity, 85.0)
        self.assertEqual(result.exact_matches, [])
        self.assertEqual(result.missing_keywords, [])
        self.assertEqual(result.match_score, 85.0)

    def test_missing_inputs_are_rejected(self):
        with self.assertRaises(ValidationError):
            create_match(None, _job(("Python", True)))


class SkillGapTests(unittest.TestCase):
    def test_missing_and_strength_names_never_intersect(self):
        resume = parse_resume(RESUME_TEXT)
        job = parse_job(JOB_TEXT)
        gaps = compute_skill_gaps(resume, job)
        missing = {entry.skill.lower() for entry in gaps.missing_skills}
        strengths = {entry.skill.lower() for entry in gaps.skill_strengths}
        self.assertFalse(missing & strengths)
        self.assertIn("kubernetes", missing)
        self.assertIn("python", strengths)

    def test_optional_skill_mentioned_once_is_nice_to_have(self):
        gaps = compute_skill_gaps(parse_resume(RESUME_TEXT), parse_job(JOB_TEXT))
        missing = {entry.skill: entry.importance for entry in gaps.missing_skills}
        self.assertEqual(missing["Kubernetes"], "nice-to-have")

    def test_optional_skill_importance_follows_mention_count(self):
        job = ParsedJobData(
            title="Platform Engineer",
            description="Our platform runs on Terraform and Terraform modules.",
            preferred_qualifications=["Kubernetes experience is a plus"],
            skills=[
                JobSkill(name="Python"),
                JobSkill(name="Terraform", required=False),
                JobSkill(name="Kubernetes", required=False),
            ],
        )
        gaps = compute_skill_gaps(parse_resume(RESUME_TEXT), job)
        missing = {entry.skill: entry.importance for entry in gaps.missing_skills}
        self.assertEqual(missing["Terraform"], "important")
        self.assertEqual(missing["Kubernetes"], "nice-to-have")
        self.assertNotIn("Python", missing)

    def test_missing_skills_carry_learning_resources(self):
        gaps = compute_skill_gaps(_resume("React"), _job(("React", True), ("Docker", True)))
        self.assertEqual(len(gaps.missing_skills), 1)
        self.assertTrue(gaps.missing_skills[0].learning_resources)


class RewriteTests(unittest.TestCase):
    def test_suggestions_never_lower_the_score_and_buckets_are_disjoint(self):
        resume = parse_resume(RESUME_TEXT)
        job = parse_job(JOB_TEXT)
        rewrites = generate_suggestions(resume, job, compute_skill_gaps(resume, job))
        for suggestion in rewrites.suggestions:
            self.assertGreaterEqual(suggestion.ats_score.after, suggestion.ats_score.before)
        priority = {item.id for item in rewrites.priority_rewrites}
        quick = {item.id for item in rewrites.quick_wins}
        self.assertFalse(priority & quick)
        self.assertLessEqual(len(rewrites.priority_rewrites), 3)

    def test_weak_opener_is_replaced_and_keyword_added(self):
        resume = _resume(
            "Python",
            experience=[
                WorkExperience(id="exp-1", position="Engineer", achievements=["Responsible for the billing API"])
            ],
        )
        job = _job(("Python", True))
        rewrites = generate_suggestions(resume, job, compute_skill_gaps(resume, job))
        experience = [item for item in rewrites.suggestions if item.section == "experience"]
        self.assertEqual(len(experience), 1)
        suggestion = experience[0]
        self.assertEqual(suggestion.id, "rw-experience-1")
        self.assertTrue(suggestion.rewritten_text.startswith("Owned the billing API using Python"))
        self.assertEqual(suggestion.action_verbs_added, ["Owned"])
        self.assertEqual(suggestion.keywords_added, ["Python"])
        self.assertEqual(suggestion.ats_score.before, 40.0)
        self.assertEqual(suggestion.ats_score.after, 100.0)
        self.assertIn("rw-experience-1", {item.id for item in rewrites.priority_rewrites})

    def test_quick_wins_are_low_effort_and_ranked_by_improvement(self):
        resume = _resume(
            "Python",
            "Django",
            summary="Engineer who enjoys SQL work",
            education=[
                Education(id="edu-1", institution="State University", degree="B.S.", field="Mathematics"),
                Education(id="edu-2", institution="City College", degree="A.A.", field="History"),
                Education(id="edu-3", institution="Open University", degree="Certificate", field="Music"),
            ],
        )
        job = _job(("Python", True), ("Django", True), ("SQL", True))
        rewrites = generate_suggestions(resume, job, compute_skill_gaps(resume, job))

        priority_ids = {item.id for item in rewrites.priority_rewrites}
        self.assertTrue(rewrites.quick_wins)
        self.assertTrue(all(item.effort == "low" for item in rewrites.quick_wins))
        self.assertFalse(priority_ids & {item.id for item in rewrites.quick_wins})
        keys = [(-item.ats_score.improvement, item.id) for item in rewrites.quick_wins]
        self.assertEqual(keys, sorted(keys))

        ranked = sorted(rewrites.suggestions, key=lambda item: (-item.ats_score.improvement, item.id))
        expected = [item.id for item in ranked if item.effort == "low" and item.id not in priority_ids][:5]
        self.assertEqual([item.id for item in rewrites.quick_wins], expected)
        self.assertEqual(rewrites.quick_wins[0].id, "rw-education-3")

    def test_section_score_components(self):
        self.assertEqual(section_score("", ["Python"]), 0.0)
        self.assertEqual(section_score("wrote code", ["Python"]), 40.0)
        self.assertEqual(section_score("Built Python tools used by 300 engineers", ["Python"]), 100.0)


if __name__ == "__main__":
    unittest.main()
