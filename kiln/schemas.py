"""Kiln Ledger - Pydantic view models.

Read-only JSON renderings of entities and aggregates, used by the
command-line front end's --json output. Image bytes are never emitted; a
view carries their size and sha256 digest instead.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from kiln.entities import FiringStep, Kiln, KilnProgram, KilnProject, ProjectImage
from kiln.utils.hashing import sha256_bytes


class KilnView(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: int
    name: str
    description: str

    @classmethod
    def from_kiln(cls, kiln: Kiln) -> KilnView:
        return cls(id=kiln.id, name=kiln.name, description=kiln.description)


class FiringStepView(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: int
    ramp_rate: str | int = Field(..., description='"AFAP" or degrees/second')
    target_temp: int
    dwell_time: int = Field(..., description="Minutes held at target_temp")

    @classmethod
    def from_step(cls, step: FiringStep) -> FiringStepView:
        rate = step.ramp_rate
        return cls(
            id=step.id,
            ramp_rate="AFAP" if rate.is_afap else rate.degrees_per_second,
            target_temp=step.target_temp,
            dwell_time=step.dwell_time,
        )


class KilnProgramView(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kiln: KilnView
    id: int
    name: str
    description: str
    steps: list[FiringStepView]

    @classmethod
    def from_program(cls, program: KilnProgram) -> KilnProgramView:
        return cls(
            kiln=KilnView.from_kiln(program.kiln),
            id=program.sequence.id,
            name=program.sequence.name,
            description=program.sequence.description,
            steps=[FiringStepView.from_step(s) for s in program.steps],
        )


class ProjectFiringView(BaseModel):
    model_config = ConfigDict(extra="forbid")

    comment: str
    program: KilnProgramView


class ProjectImageView(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: int
    name: str
    caption: str
    size: int
    sha256: str

    @classmethod
    def from_image(cls, image: ProjectImage) -> ProjectImageView:
        return cls(
            id=image.id,
            name=image.name,
            caption=image.description,
            size=len(image.contents),
            sha256=sha256_bytes(image.contents),
        )


class KilnProjectView(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: int
    name: str
    description: str
    firings: list[ProjectFiringView]
    images: list[ProjectImageView]

    @classmethod
    def from_project(cls, project: KilnProject) -> KilnProjectView:
        return cls(
            id=project.project.id,
            name=project.project.name,
            description=project.project.description,
            firings=[
                ProjectFiringView(
                    comment=f.comment, program=KilnProgramView.from_program(f.program)
                )
                for f in project.firings
            ],
            images=[ProjectImageView.from_image(i) for i in project.pictures],
        )
