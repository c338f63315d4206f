from __future__ import annotations

from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from resume_ranker.db.models import AIAssessment, Candidate, Role, Skill

CANDIDATE_MUTABLE_FIELDS = frozenset(
    {
        "name",
        "email",
        "phone",
        "location",
        "experience",
        "education",
        "current_role",
        "resume_path",
        "status",
        "score",
    }
)


class Repository:
    def __init__(self, session: Session):
        self.session = session

    def create_role(
        self,
        *,
        title: str,
        department: str,
        location: str,
        type: str,
        status: str = "open",
    ) -> Role:
        role = Role(title=title, department=department, location=location, type=type, status=status)
        self.session.add(role)
        self.session.commit()
        self.session.refresh(role)
        return role

    def get_role(self, role_id: int) -> Role | None:
        return self.session.get(Role, role_id)

    def list_roles(self) -> list[tuple[Role, int]]:
        applicants = func.count(Candidate.id)
        statement = (
            select(Role, applicants)
            .outerjoin(Candidate, Candidate.role_id == Role.id)
            .group_by(Role.id)
            .order_by(Role.created_at.desc(), Role.id.desc())
        )
        return [(role, int(count)) for role, count in self.session.execute(statement).all()]

    def create_candidate(
        self,
        *,
        role_id: int,
        name: str,
        email: str,
        resume_path: str | None = None,
        status: str = "in-review",
        score: int = 0,
    ) -> Candidate:
        candidate = Candidate(
            role_id=role_id,
            name=name,
            email=email,
            resume_path=resume_path,
            status=status,
            score=score,
        )
        self.session.add(candidate)
        self.session.commit()
        self.session.refresh(candidate)
        return candidate

    def get_candidate(self, candidate_id: int) -> Candidate | None:
        return self.session.get(Candidate, candidate_id)

    def list_candidates_by_role(self, role_id: int) -> list[Candidate]:
        statement = (
            select(Candidate)
            .where(Candidate.role_id == role_id)
            .order_by(Candidate.score.desc(), Candidate.id.asc())
        )
        return list(self.session.scalars(statement).all())

    def update_candidate(self, candidate_id: int, values: dict[str, Any]) -> Candidate:
        candidate = self.session.get(Candidate, candidate_id)
        if not candidate:
            raise ValueError(f"candidate {candidate_id} not found")

        unknown = set(values) - CANDIDATE_MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"unknown candidate fields: {sorted(unknown)}")

        for key, value in values.items():
            setattr(candidate, key, value)

        self.session.commit()
        self.session.refresh(candidate)
        return candidate

    def delete_candidate(self, candidate_id: int) -> bool:
        candidate = self.session.get(Candidate, candidate_id)
        if not candidate:
            return False
        self.session.execute(delete(AIAssessment).where(AIAssessment.candidate_id == candidate_id))
        self.session.execute(delete(Skill).where(Skill.candidate_id == candidate_id))
        self.session.delete(candidate)
        self.session.commit()
        return True

    def list_skills(self, candidate_id: int) -> list[Skill]:
        statement = select(Skill).where(Skill.candidate_id == candidate_id).order_by(Skill.id.asc())
        return list(self.session.scalars(statement).all())

    def add_skill(self, candidate_id: int, name: str, proficiency: int) -> Skill:
        skill = Skill(candidate_id=candidate_id, skill_name=name, proficiency=proficiency)
        self.session.add(skill)
        self.session.commit()
        self.session.refresh(skill)
        return skill

    def get_assessment(self, candidate_id: int) -> AIAssessment | None:
        statement = (
            select(AIAssessment)
            .where(AIAssessment.candidate_id == candidate_id)
            .order_by(AIAssessment.id.desc())
            .limit(1)
        )
        return self.session.scalar(statement)

    def create_assessment(
        self,
        *,
        candidate_id: int,
        technical_score: int,
        experience_score: int,
        education_score: int,
        cultural_score: int,
        recommendation: str,
        detailed_comments: str,
        strengths: list[str],
        weaknesses: list[str],
    ) -> AIAssessment:
        assessment = AIAssessment(
            candidate_id=candidate_id,
            technical_score=technical_score,
            experience_score=experience_score,
            education_score=education_score,
            cultural_score=cultural_score,
            recommendation=recommendation,
            detailed_comments=detailed_comments,
            strengths_json=list(strengths),
            weaknesses_json=list(weaknesses),
        )
        self.session.add(assessment)
        self.session.commit()
        self.session.refresh(assessment)
        return assessment

    def dump_all(self) -> dict[str, list[Any]]:
        return {
            "roles": list(self.session.scalars(select(Role).order_by(Role.id)).all()),
            "candidates": list(self.session.scalars(select(Candidate).order_by(Candidate.id)).all()),
            "skills": list(self.session.scalars(select(Skill).order_by(Skill.id)).all()),
            "assessments": list(self.session.scalars(select(AIAssessment).order_by(AIAssessment.id)).all()),
        }

    def reset_all(self) -> None:
        # children first so foreign keys never dangle
        for model in (AIAssessment, Skill, Candidate, Role):
            self.session.execute(delete(model))
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
