"""JSON document storage for the budget planner.

A single ``data.json`` file holds every transaction, budget, category, goal
and insight plus the document config.  Every mutating call rewrites the
whole document before returning; backups are full snapshots written under
``backups/``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import fields, replace
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar, Union

import pandas as pd

from .config import (
    BACKUPS_DIRNAME,
    DATA_FILENAME,
    default_config,
    ensure_data_directories,
    resolve_storage_path,
)
from .exceptions import NotFoundError, ValidationError
from .models import Budget, Category, Insight, SavingsGoal, Transaction, now_iso
from .taxonomy import default_categories

logger = logging.getLogger(__name__)

Record = TypeVar('Record')

COLLECTIONS: Dict[str, Callable[[Dict[str, Any]], Any]] = {
    'transactions': Transaction.from_dict,
    'budgets': Budget.from_dict,
    'categories': Category.from_dict,
    'goals': SavingsGoal.from_dict,
    'insights': Insight.from_dict,
}
CSV_COLUMNS = ['ID', 'Type', 'Amount', 'Category', 'Description', 'Date', 'Tags']


class StorageManager:
    """Owns the in-memory document and its JSON file."""

    def __init__(self, data_path: Optional[Union[str, Path]] = None):
        """Initialize the storage manager.

        Args:
            data_path: Directory holding ``data.json``. If None, the location is
                resolved from the environment (see ``config.resolve_storage_path``).
        """
        self.data_path = resolve_storage_path(data_path)
        self._data: Dict[str, Any] = self._default_data()

    # Lifecycle --------------------------------------------------------------

    @property
    def data_file(self) -> Path:
        return self.data_path / DATA_FILENAME

    @property
    def backups_dir(self) -> Path:
        return self.data_path / BACKUPS_DIRNAME

    def initialize(self) -> None:
        """Create directories and load any existing document."""
        ensure_data_directories(self.data_path)
        self._load()

    def close(self) -> None:
        self.save()

    def _default_data(self) -> Dict[str, Any]:
        return {
            'transactions': [],
            'budgets': [],
            'categories': default_categories(),
            'goals': [],
            'insights': [],
            'config': default_config(),
        }

    def _load(self) -> None:
        if not self.data_file.exists():
            return
        try:
            with self.data_file.open('r', encoding='utf-8') as handle:
                raw = json.load(handle)
            self._data = self._deserialize(raw)
        except (json.JSONDecodeError, OSError, KeyError, TypeError, ValueError) as exc:
            # Unreadable documents are replaced by defaults rather than failing startup.
            logger.warning("Could not load %s, starting from defaults: %s", self.data_file, exc)
            self._data = self._default_data()

    def _deserialize(self, raw: Any) -> Dict[str, Any]:
        if not isinstance(raw, dict):
            raise ValueError("document root must be an object")
        data = self._default_data()
        for key, loader in COLLECTIONS.items():
            if key in raw:
                data[key] = [loader(item) for item in raw[key] or []]
        config = raw.get('config')
        if isinstance(config, dict):
            data['config'].update(config)
        return data

    def to_document(self) -> Dict[str, Any]:
        document: Dict[str, Any] = {
            key: [record.to_dict() for record in self._data[key]] for key in COLLECTIONS
        }
        document['config'] = dict(self._data['config'])
        return document

    def save(self) -> None:
        # serialize before truncating the file
        document = self.to_document()
        self.data_path.mkdir(parents=True, exist_ok=True)
        with self.data_file.open('w', encoding='utf-8') as handle:
            json.dump(document, handle, indent=2, ensure_ascii=False)
        logger.info("Saved document to %s", self.data_file)

    def backup(self) -> Path:
        """Write a full snapshot into ``backups/`` and record the time in config."""
        stamp = datetime.now().isoformat()
        safe_stamp = stamp.replace(':', '-').replace('.', '-')
        target = self.backups_dir / f"backup-{safe_stamp}.json"
        self.backups_dir.mkdir(parents=True, exist_ok=True)
        with target.open('w', encoding='utf-8') as handle:
            json.dump(self.to_document(), handle, indent=2, ensure_ascii=False)
        self._data['config']['lastBackup'] = stamp
        self.save()
        logger.info("Backup written to %s", target)
        return target

    def clear_all_data(self) -> None:
        self._data = self._default_data()
        self.save()

    # Generic helpers ----------------------------------------------------------

    def _find(self, key: str, record_id: str) -> Optional[Any]:
        return next((r for r in self._data[key] if r.id == record_id), None)

    def _save_or_restore(self, key: str, previous: Any) -> None:
        """Save the document; if the write fails put ``previous`` back under ``key``."""
        try:
            self.save()
        except Exception:
            self._data[key] = previous
            raise

    def _add(self, key: str, record: Record) -> Record:
        previous = list(self._data[key])
        self._data[key].append(record)
        self._save_or_restore(key, previous)
        return record

    def _update(self, key: str, entity: str, record_id: str, updates: Dict[str, Any]) -> Any:
        records = self._data[key]
        for index, record in enumerate(records):
            if record.id == record_id:
                updated = _apply_updates(record, updates)
                previous = list(records)
                records[index] = updated
                self._save_or_restore(key, previous)
                return updated
        raise NotFoundError(entity, record_id)

    def _delete(self, key: str, entity: str, record_id: str) -> None:
        records = self._data[key]
        for index, record in enumerate(records):
            if record.id == record_id:
                previous = list(records)
                del records[index]
                self._save_or_restore(key, previous)
                return
        raise NotFoundError(entity, record_id)

    # Transactions -------------------------------------------------------------

    def get_transactions(self) -> List[Transaction]:
        return list(self._data['transactions'])

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        return self._find('transactions', transaction_id)

    def add_transaction(self, transaction: Transaction) -> Transaction:
        return self._add('transactions', transaction)

    def update_transaction(self, transaction_id: str, updates: Dict[str, Any]) -> Transaction:
        return self._update('transactions', 'transaction', transaction_id, updates)

    def delete_transaction(self, transaction_id: str) -> None:
        self._delete('transactions', 'transaction', transaction_id)

    # Budgets ------------------------------------------------------------------

    def get_budgets(self) -> List[Budget]:
        return list(self._data['budgets'])

    def get_budget(self, budget_id: str) -> Optional[Budget]:
        return self._find('budgets', budget_id)

    def add_budget(self, budget: Budget) -> Budget:
        return self._add('budgets', budget)

    def update_budget(self, budget_id: str, updates: Dict[str, Any]) -> Budget:
        return self._update('budgets', 'budget', budget_id, updates)

    def delete_budget(self, budget_id: str) -> None:
        self._delete('budgets', 'budget', budget_id)

    # Categories ---------------------------------------------------------------

    def get_categories(self) -> List[Category]:
        return list(self._data['categories'])

    def get_category_by_name(self, name: str) -> Optional[Category]:
        lowered = name.strip().lower()
        return next((c for c in self._data['categories'] if c.name.lower() == lowered), None)

    def add_category(self, category: Category) -> Category:
        if self.get_category_by_name(category.name) is not None:
            raise ValidationError([f'Category "{category.name}" already exists'])
        return self._add('categories', category)

    def delete_category(self, category_id: str) -> None:
        category = self._find('categories', category_id)
        if category is None:
            raise NotFoundError('category', category_id)
        if category.is_default:
            raise ValidationError([f'Default category "{category.name}" cannot be deleted'])
        self._delete('categories', 'category', category_id)

    # Goals --------------------------------------------------------------------

    def get_goals(self) -> List[SavingsGoal]:
        return list(self._data['goals'])

    def get_goal(self, goal_id: str) -> Optional[SavingsGoal]:
        return self._find('goals', goal_id)

    def add_goal(self, goal: SavingsGoal) -> SavingsGoal:
        return self._add('goals', goal)

    def update_goal(self, goal_id: str, updates: Dict[str, Any]) -> SavingsGoal:
        return self._update('goals', 'goal', goal_id, updates)

    def delete_goal(self, goal_id: str) -> None:
        self._delete('goals', 'goal', goal_id)

    # Insights -----------------------------------------------------------------

    def get_insights(self) -> List[Insight]:
        return list(self._data['insights'])

    def add_insight(self, insight: Insight) -> Insight:
        return self._add('insights', insight)

    def add_insights(self, insights: List[Insight]) -> List[Insight]:
        """Append several insights with a single document write."""
        previous = list(self._data['insights'])
        self._data['insights'].extend(insights)
        self._save_or_restore('insights', previous)
        return insights

    def mark_insight_read(self, insight_id: str) -> Insight:
        return self._update('insights', 'insight', insight_id, {'is_read': True})

    # Config -------------------------------------------------------------------

    def get_config(self) -> Dict[str, Any]:
        return dict(self._data['config'])

    def update_config(self, updates: Dict[str, Any]) -> Dict[str, Any]:
        previous = dict(self._data['config'])
        self._data['config'].update(updates)
        self._save_or_restore('config', previous)
        return self.get_config()

    # Export -------------------------------------------------------------------

    def export_json(self) -> str:
        return json.dumps(self.to_document(), indent=2, ensure_ascii=False)

    def export_transactions_csv(self) -> str:
        rows = [
            {
                'ID': t.id,
                'Type': t.type,
                'Amount': t.amount,
                'Category': t.category,
                'Description': t.description,
                'Date': t.date.isoformat(),
                'Tags': ';'.join(t.tags),
            }
            for t in self._data['transactions']
        ]
        return pd.DataFrame(rows, columns=CSV_COLUMNS).to_csv(index=False)


def _apply_updates(record: Record, updates: Dict[str, Any]) -> Record:
    """Return a copy of ``record`` with ``updates`` applied and a fresh timestamp."""
    allowed = {f.name for f in fields(record)} - {'id', 'created_at'}
    unknown = sorted(set(updates) - allowed)
    if unknown:
        raise ValidationError([f"Unknown or read-only field: {name}" for name in unknown])
    changes = dict(updates)
    if 'updated_at' in allowed:
        changes['updated_at'] = now_iso()
    return replace(record, **changes)
