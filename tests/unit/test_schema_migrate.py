import sys
from pathlib import Path
import unittest

from sqlalchemy import create_engine, inspect

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from tavern.infrastructure.db.sql.migrate import (
    adapt_statement,
    apply_schema,
    schema_statements,
    split_sql_statements,
)


class SchemaMigrateTests(unittest.TestCase):
    def test_split_ignores_comments_and_quoted_semicolons(self) -> None:
        sql_text = "-- header; not a statement\nCREATE TABLE a (x TEXT DEFAULT ';');\n\nCREATE TABLE b (y INT)"

        statements = split_sql_statements(sql_text)

        self.assertEqual(["CREATE TABLE a (x TEXT DEFAULT ';')", "CREATE TABLE b (y INT)"], statements)

    def test_sqlite_adaptation(self) -> None:
        statement = "CREATE TABLE t (\n    id INT AUTO_INCREMENT PRIMARY KEY\n) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4"

        adapted = adapt_statement(statement, "sqlite")

        self.assertIn("INTEGER PRIMARY KEY AUTOINCREMENT", adapted)
        self.assertNotIn("ENGINE", adapted)
        self.assertEqual(statement, adapt_statement(statement, "mysql"))

    def test_schema_has_all_tables(self) -> None:
        self.assertEqual(5, len(schema_statements("mysql")))

    def test_apply_schema_is_idempotent_on_sqlite(self) -> None:
        engine = create_engine("sqlite:///:memory:", future=True)
        self.addCleanup(engine.dispose)

        apply_schema(engine)
        apply_schema(engine)

        self.assertEqual(
            {"player_character", "inventory_item", "companion", "chat_message", "journal_entry"},
            set(inspect(engine).get_table_names()),
        )


if __name__ == "__main__":
    unittest.main()
