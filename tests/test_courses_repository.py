"""Tests for courses, disciplines, assignments and enrollments repository."""

import pytest

from conftest import ADMIN_ID, STUDENT2_ID, STUDENT_ID, TEACHER2_ID, TEACHER_ID
from journal.core.models import Course, Discipline, Enrollment, Subject
from journal.db.courses_repository import (
    assignment_id,
    assignments_by_course,
    course_assignment_rows,
    course_disciplines,
    create_course,
    discipline_teacher,
    enroll_students,
    enrollments_by_course,
    get_course,
    get_discipline,
    list_courses,
    list_disciplines,
    remove_students,
    student_courses,
    teacher_courses,
)
from journal.db.database import get_db
from journal.db.errors import (
    AssignmentNotFoundError,
    CourseNotFoundError,
    DisciplineNotFoundError,
    StorageError,
)


def _count(sql: str, params: tuple = ()) -> int:
    with get_db() as conn:
        return conn.execute(sql, params).fetchone()[0]


class TestCreateCourse:
    """Tests for create_course."""

    def test_creates_one_course_and_n_assignments(self, seeded):
        """N subjects give one course row and N assignment rows."""
        subjects = [
            Subject(teacher_id=TEACHER_ID, discipline_id=1),
            Subject(teacher_id=TEACHER_ID, discipline_id=2),
            Subject(teacher_id=TEACHER2_ID, discipline_id=2),
        ]
        course_id = create_course("Algorithms", 101, subjects)

        assert _count("SELECT COUNT(*) FROM courses") == 1
        assert _count("SELECT COUNT(*) FROM assignments") == 3
        assert (
            _count("SELECT COUNT(*) FROM assignments WHERE course_id = ?", (course_id,))
            == 3
        )

    def test_course_without_subjects(self, seeded):
        course_id = create_course("Seminar", 7)
        assert get_course(course_id) == Course(id=course_id, name="Seminar", number=7)
        assert assignments_by_course(course_id) == []

    def test_first_course_gets_id_one(self, seeded):
        assert create_course("Algorithms", 101) == 1
        assert create_course("Databases", 102) == 2

    def test_unknown_teacher_writes_nothing(self, seeded):
        """A failing assignment insert rolls back the course row."""
        subjects = [
            Subject(teacher_id=TEACHER_ID, discipline_id=1),
            Subject(teacher_id=999, discipline_id=2),
        ]
        with pytest.raises(StorageError) as exc:
            create_course("Broken", 1, subjects)

        assert exc.value.op == "storage.courses.create_course"
        assert _count("SELECT COUNT(*) FROM courses") == 0
        assert _count("SELECT COUNT(*) FROM assignments") == 0

    def test_duplicate_subject_rejected(self, seeded):
        """The same (course, discipline, teacher) cannot be assigned twice."""
        subjects = [
            Subject(teacher_id=TEACHER_ID, discipline_id=1),
            Subject(teacher_id=TEACHER_ID, discipline_id=1),
        ]
        with pytest.raises(StorageError):
            create_course("Twice", 1, subjects)


class TestCourseLookups:
    """Tests for get_course, list_courses, teacher_courses and student_courses."""

    def test_get_course_not_found(self, seeded):
        with pytest.raises(CourseNotFoundError):
            get_course(404)

    def test_list_courses_ordered_by_id(self, seeded):
        create_course("B", 2)
        create_course("A", 1)
        assert [c.name for c in list_courses()] == ["B", "A"]

    def test_teacher_courses_after_creation(self, seeded):
        """A course created with the teacher's subject is listed for them."""
        course_id = create_course(
            "Algorithms", 101, [Subject(teacher_id=TEACHER_ID, discipline_id=2)]
        )
        courses = teacher_courses(TEACHER_ID)
        assert Course(id=course_id, name="Algorithms", number=101) in courses

    def test_teacher_courses_listed_once(self, seeded):
        """Several disciplines in one course give one course entry."""
        create_course(
            "Algorithms",
            101,
            [
                Subject(teacher_id=TEACHER_ID, discipline_id=1),
                Subject(teacher_id=TEACHER_ID, discipline_id=2),
            ],
        )
        assert [c.id for c in teacher_courses(TEACHER_ID)] == [1]

    def test_teacher_without_assignments(self, seeded):
        assert teacher_courses(TEACHER2_ID) == []

    def test_student_courses(self, seeded):
        first = create_course("Algorithms", 101)
        second = create_course("Databases", 102)
        create_course("Networks", 103)
        enroll_students(
            [
                Enrollment(course_id=first, student_id=STUDENT_ID),
                Enrollment(course_id=second, student_id=STUDENT_ID),
                Enrollment(course_id=second, student_id=STUDENT2_ID),
            ]
        )
        assert [c.id for c in student_courses(STUDENT_ID)] == [first, second]
        assert [c.id for c in student_courses(STUDENT2_ID)] == [second]


class TestDisciplines:
    """Tests for discipline lookups."""

    def test_list_disciplines_sorted_by_name(self, seeded):
        assert [d.name for d in list_disciplines()] == [
            "Calculus",
            "Data Structures",
            "Physics",
        ]

    def test_get_discipline_not_found(self, seeded):
        with pytest.raises(DisciplineNotFoundError):
            get_discipline(404)

    def test_course_disciplines(self, seeded):
        course_id = create_course(
            "Algorithms",
            101,
            [
                Subject(teacher_id=TEACHER_ID, discipline_id=2),
                Subject(teacher_id=TEACHER2_ID, discipline_id=2),
                Subject(teacher_id=TEACHER_ID, discipline_id=3),
            ],
        )
        assert course_disciplines(course_id) == [
            Discipline(id=2, name="Data Structures"),
            Discipline(id=3, name="Physics"),
        ]

    def test_discipline_teacher(self, seeded):
        course_id = create_course(
            "Algorithms",
            101,
            [
                Subject(teacher_id=TEACHER_ID, discipline_id=2),
                Subject(teacher_id=TEACHER2_ID, discipline_id=2),
            ],
        )
        teachers = discipline_teacher(course_id, 2)
        assert [t.id for t in teachers] == [TEACHER_ID, TEACHER2_ID]
        assert teachers[0].last_name == "Petrov"
        assert discipline_teacher(course_id, 1) == []


class TestAssignmentId:
    """Tests for assignment_id."""

    def test_stable_for_repeated_calls(self, seeded):
        course_id = create_course(
            "Algorithms", 101, [Subject(teacher_id=TEACHER_ID, discipline_id=2)]
        )
        first = assignment_id(course_id, 2, TEACHER_ID)
        assert assignment_id(course_id, 2, TEACHER_ID) == first

    def test_distinct_triples_distinct_ids(self, seeded):
        course_id = create_course(
            "Algorithms",
            101,
            [
                Subject(teacher_id=TEACHER_ID, discipline_id=2),
                Subject(teacher_id=TEACHER2_ID, discipline_id=2),
            ],
        )
        assert assignment_id(course_id, 2, TEACHER_ID) != assignment_id(
            course_id, 2, TEACHER2_ID
        )

    @pytest.mark.parametrize(
        "triple",
        [(1, 2, ADMIN_ID), (1, 1, TEACHER_ID), (2, 2, TEACHER_ID)],
    )
    def test_unknown_triple_errors(self, seeded, triple):
        create_course("Algorithms", 101, [Subject(teacher_id=TEACHER_ID, discipline_id=2)])
        with pytest.raises(AssignmentNotFoundError):
            assignment_id(*triple)


class TestCourseAssignmentRows:
    """Tests for the batch assignment fetch."""

    def test_empty_input(self, seeded):
        assert course_assignment_rows([]) == []

    def test_rows_carry_discipline_and_teacher(self, seeded):
        first = create_course(
            "Algorithms", 101, [Subject(teacher_id=TEACHER_ID, discipline_id=2)]
        )
        second = create_course(
            "Physics I", 201, [Subject(teacher_id=TEACHER2_ID, discipline_id=3)]
        )
        create_course("Other", 301, [Subject(teacher_id=TEACHER_ID, discipline_id=1)])

        rows = course_assignment_rows([first, second])

        assert [r.assignment.course_id for r in rows] == [first, second]
        assert rows[0].discipline == Discipline(id=2, name="Data Structures")
        assert rows[0].teacher.first_name == "Petr"
        assert rows[1].teacher.id == TEACHER2_ID


class TestEnrollments:
    """Tests for enroll_students/remove_students."""

    def test_enroll_then_remove_leaves_nothing(self, seeded):
        course_id = create_course("Algorithms", 101)
        pair = [Enrollment(course_id=course_id, student_id=STUDENT_ID)]

        enroll_students(pair)
        assert len(enrollments_by_course(course_id)) == 1

        remove_students(pair)
        assert enrollments_by_course(course_id) == []

    def test_remove_missing_pair_is_noop(self, seeded):
        course_id = create_course("Algorithms", 101)
        deleted = remove_students([Enrollment(course_id=course_id, student_id=STUDENT_ID)])
        assert deleted == 0

    def test_duplicate_enrollments_all_removed(self, seeded):
        """Enrolling twice is allowed; removing deletes every copy."""
        course_id = create_course("Algorithms", 101)
        pair = [Enrollment(course_id=course_id, student_id=STUDENT_ID)]
        enroll_students(pair)
        enroll_students(pair)
        assert len(enrollments_by_course(course_id)) == 2

        assert remove_students(pair) == 2
        assert enrollments_by_course(course_id) == []

    def test_remove_only_matching_pairs(self, seeded):
        course_id = create_course("Algorithms", 101)
        enroll_students(
            [
                Enrollment(course_id=course_id, student_id=STUDENT_ID),
                Enrollment(course_id=course_id, student_id=STUDENT2_ID),
            ]
        )
        remove_students([Enrollment(course_id=course_id, student_id=STUDENT_ID)])
        assert [e.student_id for e in enrollments_by_course(course_id)] == [STUDENT2_ID]

    def test_enroll_unknown_course_writes_nothing(self, seeded):
        course_id = create_course("Algorithms", 101)
        with pytest.raises(StorageError):
            enroll_students(
                [
                    Enrollment(course_id=course_id, student_id=STUDENT_ID),
                    Enrollment(course_id=999, student_id=STUDENT_ID),
                ]
            )
        assert enrollments_by_course(course_id) == []


class TestIntegerRange:
    """Integers outside SQLite's 64-bit range surface as StorageError."""

    def test_lookup_with_oversized_id(self, seeded):
        with pytest.raises(StorageError) as exc:
            assignment_id(2**64, 1, TEACHER_ID)
        assert isinstance(exc.value.cause, OverflowError)

    def test_insert_with_oversized_number_writes_nothing(self, seeded):
        with pytest.raises(StorageError):
            create_course("Huge", 2**64)
        assert _count("SELECT COUNT(*) FROM courses") == 0
