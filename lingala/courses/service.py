"""Course catalog read service.

Point lookups for courses, modules and lessons plus the ordered
course -> modules -> lessons walk used by progress aggregation.
"""

from uuid import UUID

from lingala.core.database.query import CassandraService
from lingala.courses.models import Course, Lesson, Module


class CourseService(CassandraService):
    """Read-only access to the course catalog."""

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._get_course = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.courses WHERE id = ?"
        )
        self._get_module = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.modules WHERE id = ?"
        )
        self._get_lesson = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.lessons WHERE id = ?"
        )
        self._get_course_modules = self.session.prepare(f"""
            SELECT module_id FROM {self.keyspace}.modules_by_course
            WHERE course_id = ?
        """)
        self._get_module_lessons = self.session.prepare(f"""
            SELECT lesson_id FROM {self.keyspace}.lessons_by_module
            WHERE module_id = ?
        """)

    async def get_course(self, course_id: UUID) -> Course | None:
        result = await self._execute(self._get_course, [course_id])
        row = result.one()
        return Course.from_row(row) if row else None

    async def get_module(self, module_id: UUID) -> Module | None:
        result = await self._execute(self._get_module, [module_id])
        row = result.one()
        return Module.from_row(row) if row else None

    async def get_lesson(self, lesson_id: UUID) -> Lesson | None:
        result = await self._execute(self._get_lesson, [lesson_id])
        row = result.one()
        return Lesson.from_row(row) if row else None

    async def get_course_module_ids(self, course_id: UUID) -> list[UUID]:
        """Module ids of a course in display order."""
        rows = await self._execute(self._get_course_modules, [course_id])
        return [row.module_id for row in rows]

    async def get_module_lesson_ids(self, module_id: UUID) -> list[UUID]:
        """Lesson ids of a module in display order."""
        rows = await self._execute(self._get_module_lessons, [module_id])
        return [row.lesson_id for row in rows]

    async def get_course_lesson_ids(self, course_id: UUID) -> list[UUID]:
        """Every lesson id under every module of the course, in order."""
        lesson_ids: list[UUID] = []
        for module_id in await self.get_course_module_ids(course_id):
            lesson_ids.extend(await self.get_module_lesson_ids(module_id))
        return lesson_ids
