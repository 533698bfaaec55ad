"""Tests for kiln.entities value objects and aggregates."""

import pytest

from kiln.entities import (
    AFAP,
    FiringSequence,
    FiringStep,
    Kiln,
    KilnProgram,
    KilnProject,
    Project,
    ProjectImage,
    RampRate,
)
from kiln.errors import InvalidIndex


def _program(num_steps: int = 0) -> KilnProgram:
    kiln = Kiln(1, "Kiln", "A kiln")
    sequence = FiringSequence(1, "Full fuse", "Fuse it", kiln.id)
    program = KilnProgram(kiln, sequence)
    for i in range(num_steps):
        program.add_step(FiringStep(i + 1, 1, RampRate.deg_per_sec(100), 1000 + i, 10))
    return program


def _image(image_id: int) -> ProjectImage:
    return ProjectImage(image_id, 1, f"image{image_id}.jpg", "caption", b"\x89PNG")


class TestRampRate:
    """Tests for the tagged ramp rate value."""

    def test_afap_encodes_as_minus_one(self):
        """AFAP should be stored as -1."""
        assert RampRate.afap().to_db() == -1
        assert AFAP.is_afap

    def test_rate_encodes_as_itself(self):
        """A degrees/second rate should be stored verbatim."""
        assert RampRate.deg_per_sec(300).to_db() == 300

    def test_zero_is_distinct_from_afap(self):
        """Zero is a legal rate and must not collapse into AFAP."""
        zero = RampRate.from_db(0)
        assert not zero.is_afap
        assert zero.degrees_per_second == 0
        assert zero != AFAP
        assert zero.to_db() == 0

    def test_from_db(self):
        """Decoding should map -1 to AFAP and anything >= 0 to a rate."""
        assert RampRate.from_db(-1) == AFAP
        assert RampRate.from_db(300) == RampRate.deg_per_sec(300)

    def test_from_db_rejects_below_sentinel(self):
        """Values below -1 are not valid encodings."""
        with pytest.raises(ValueError):
            RampRate.from_db(-2)

    def test_negative_rate_rejected(self):
        """deg_per_sec should refuse negative rates."""
        with pytest.raises(ValueError):
            RampRate.deg_per_sec(-5)

    def test_parse(self):
        """parse should accept AFAP in any case and non-negative integers."""
        assert RampRate.parse("AFAP") == AFAP
        assert RampRate.parse("afap") == AFAP
        assert RampRate.parse(" 250 ") == RampRate.deg_per_sec(250)

    @pytest.mark.parametrize("text", ["fast", "-3", "1.5", ""])
    def test_parse_rejects_garbage(self, text):
        """parse should raise ValueError for anything else."""
        with pytest.raises(ValueError):
            RampRate.parse(text)

    def test_str(self):
        """str() should render AFAP or the number."""
        assert str(AFAP) == "AFAP"
        assert str(RampRate.deg_per_sec(42)) == "42"


class TestValueObjects:
    """Tests for row value objects."""

    def test_kiln_text_fields_are_editable(self):
        """Name and description can be edited in memory."""
        kiln = Kiln(1, "Kiln", "desc")
        kiln.name = "Kiln1"
        kiln.description = "new"
        assert kiln == Kiln(1, "Kiln1", "new")

    def test_field_equality(self):
        """Value objects compare field for field."""
        assert FiringSequence(1, "a", "b", 2) == FiringSequence(1, "a", "b", 2)
        assert FiringSequence(1, "a", "b", 2) != FiringSequence(1, "a", "b", 3)

    def test_image_repr_omits_contents(self):
        """Image bytes should not be dumped into reprs."""
        image = ProjectImage(1, 1, "big.jpg", "caption", b"x" * 10_000)
        assert "xxxx" not in repr(image)


class TestKilnProgramEditing:
    """Tests for KilnProgram step editors."""

    def test_new_program_is_empty(self):
        """A new program has no steps."""
        program = _program()
        assert len(program) == 0
        assert program.steps == []

    def test_add_step_chains(self):
        """add_step should append and return the program."""
        program = _program()
        step1 = FiringStep(0, 0, AFAP, 1000, 30)
        step2 = FiringStep(0, 0, RampRate.deg_per_sec(300), 1250, 15)
        assert program.add_step(step1).add_step(step2) is program
        assert program.steps == [step1, step2]

    def test_add_steps(self):
        """add_steps should append all steps in order."""
        program = _program(1)
        new_steps = [FiringStep(0, 0, AFAP, 900, 60), FiringStep(0, 0, AFAP, 500, 0)]
        program.add_steps(new_steps)
        assert program.steps[1:] == new_steps

    def test_steps_is_a_copy(self):
        """Mutating the returned list should not change the program."""
        program = _program(2)
        program.steps.clear()
        assert len(program) == 2

    def test_remove_step_shifts_left(self):
        """Removing a middle step should preserve the order of the rest."""
        program = _program(3)
        before = program.steps
        program.remove_step(1)
        assert program.steps == [before[0], before[2]]

    @pytest.mark.parametrize("index", [3, 4, 100])
    def test_remove_step_out_of_range(self, index):
        """remove_step fails with InvalidIndex when index >= len."""
        program = _program(3)
        before = program.steps
        with pytest.raises(InvalidIndex) as exc_info:
            program.remove_step(index)
        assert exc_info.value.index == index
        assert program.steps == before

    def test_remove_step_from_empty(self):
        """Index 0 is out of range for an empty program."""
        with pytest.raises(InvalidIndex):
            _program().remove_step(0)

    def test_insert_step_shifts_right(self):
        """Inserting should push later steps right."""
        program = _program(2)
        before = program.steps
        new_step = FiringStep(0, 0, AFAP, 1500, 5)
        program.insert_step(new_step, 1)
        assert program.steps == [before[0], new_step, before[1]]

    def test_insert_step_at_len_appends(self):
        """index == len is accepted as append."""
        program = _program(2)
        new_step = FiringStep(0, 0, AFAP, 1500, 5)
        program.insert_step(new_step, 2)
        assert program.step(2) == new_step

    def test_insert_step_out_of_range(self):
        """insert_step fails with InvalidIndex when index > len."""
        program = _program(2)
        before = program.steps
        with pytest.raises(InvalidIndex) as exc_info:
            program.insert_step(FiringStep(0, 0, AFAP, 1, 1), 3)
        assert exc_info.value.index == 3
        assert program.steps == before

    def test_negative_indices_rejected(self):
        """Negative positions are never valid for the editors."""
        program = _program(2)
        with pytest.raises(InvalidIndex):
            program.remove_step(-1)
        with pytest.raises(InvalidIndex):
            program.insert_step(FiringStep(0, 0, AFAP, 1, 1), -1)
        assert len(program) == 2

    def test_step_getter_raises_index_error(self):
        """The direct getter fails hard instead of returning InvalidIndex."""
        program = _program(1)
        with pytest.raises(IndexError):
            program.step(1)

    def test_invalid_index_is_not_index_error(self):
        """Editors and getters raise deliberately different types."""
        assert not issubclass(InvalidIndex, IndexError)


class TestKilnProjectEditing:
    """Tests for KilnProject firing and picture editors."""

    def test_empty_project(self):
        """A new project has no firings or pictures; both lists have length 0."""
        project = KilnProject(Project(1, "Dish", "A dish"))
        assert project.num_firings == 0
        assert project.num_images == 0
        assert len(project.firing_comments) == len(project.firings) == 0

    def test_add_firing_keeps_pairs(self):
        """Each comment stays attached to its program."""
        project = KilnProject(Project(1, "Dish", "A dish"))
        fuse = _program()
        slump = _program(1)
        project.add_firing(fuse, "Full fuse").add_firing(slump, "Slump")
        assert project.firing_comments == ["Full fuse", "Slump"]
        assert project.firing_programs == [fuse, slump]
        assert project.firing(1) == ("Slump", slump)

    def test_delete_firing_removes_comment_too(self):
        """delete_firing removes the comment and the program together."""
        project = KilnProject(Project(1, "Dish", "A dish"))
        for i in range(3):
            project.add_firing(_program(i), f"firing {i}")
        project.delete_firing(1)
        assert project.firing_comments == ["firing 0", "firing 2"]
        assert [len(p) for p in project.firing_programs] == [0, 2]

    def test_insert_firing(self):
        """insert_firing places the pair before the given index; len appends."""
        project = KilnProject(Project(1, "Dish", "A dish"))
        project.add_firing(_program(0), "a")
        project.insert_firing(_program(1), "b", 0)
        project.insert_firing(_program(2), "c", 2)
        assert project.firing_comments == ["b", "a", "c"]
        assert [len(p) for p in project.firing_programs] == [1, 0, 2]

    def test_firing_editors_out_of_range(self):
        """Out-of-range firing edits raise InvalidIndex and change nothing."""
        project = KilnProject(Project(1, "Dish", "A dish"))
        project.add_firing(_program(), "only")
        with pytest.raises(InvalidIndex) as exc_info:
            project.delete_firing(1)
        assert exc_info.value.index == 1
        with pytest.raises(InvalidIndex):
            project.insert_firing(_program(), "late", 2)
        assert project.firing_comments == ["only"]
        assert project.num_firings == 1

    def test_lockstep_holds_through_edit_sequence(self):
        """Comment and program lists keep equal length across any edits."""
        project = KilnProject(Project(1, "Dish", "A dish"))
        edits = [
            lambda: project.add_firing(_program(), "a"),
            lambda: project.insert_firing(_program(), "b", 0),
            lambda: project.delete_firing(5),
            lambda: project.delete_firing(0),
            lambda: project.insert_firing(_program(), "c", 9),
            lambda: project.delete_firing(0),
        ]
        for edit in edits:
            try:
                edit()
            except InvalidIndex:
                pass
            assert len(project.firing_comments) == len(project.firing_programs)
        assert project.num_firings == 0

    def test_picture_editors(self):
        """Picture editors mirror the firing editors over the image list."""
        project = KilnProject(Project(1, "Dish", "A dish"))
        project.add_picture(_image(1)).add_picture(_image(2))
        project.insert_picture(_image(3), 1)
        assert [p.id for p in project.pictures] == [1, 3, 2]
        project.delete_picture(0)
        assert [p.id for p in project.pictures] == [3, 2]
        project.insert_picture(_image(4), 2)
        assert [p.id for p in project.pictures] == [3, 2, 4]

    def test_picture_editors_out_of_range(self):
        """Out-of-range picture edits raise InvalidIndex and change nothing."""
        project = KilnProject(Project(1, "Dish", "A dish"))
        project.add_picture(_image(1))
        with pytest.raises(InvalidIndex):
            project.delete_picture(1)
        with pytest.raises(InvalidIndex) as exc_info:
            project.insert_picture(_image(2), 2)
        assert exc_info.value.index == 2
        assert [p.id for p in project.pictures] == [1]

    def test_getters_raise_index_error(self):
        """firing() and picture() fail hard on bad indices."""
        project = KilnProject(Project(1, "Dish", "A dish"))
        with pytest.raises(IndexError):
            project.firing(0)
        with pytest.raises(IndexError):
            project.picture(0)

    def test_firing_records_are_unhashable(self):
        """A firing holds a mutable program and cannot be hashed."""
        project = KilnProject(Project(1, "Dish", "A dish"))
        project.add_firing(_program(), "a")
        with pytest.raises(TypeError):
            hash(project.firings[0])

    def test_returned_programs_are_copies(self):
        """Editing a program read from the project leaves the project unchanged."""
        project = KilnProject(Project(1, "Dish", "A dish"))
        project.add_firing(_program(1), "a")

        project.firing_programs[0].add_step(FiringStep(0, 0, AFAP, 1, 1))
        project.firings[0].program.remove_step(0)
        project.firing(0)[1].sequence.name = "renamed"

        program = project.firing(0)[1]
        assert len(program) == 1
        assert program.sequence.name == "Full fuse"
