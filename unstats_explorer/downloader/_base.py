# ruff: noqa: E402
from __future__ import annotations

"""Core abstractions for batch jobs.

Every batch job should implement `BaseJob.run` and return a
`pandas.DataFrame` (possibly empty) for the export step.
"""

from abc import ABC, abstractmethod
from typing import Optional

import pandas as pd


class BaseJob(ABC):
    """YAML で定義された 1 件のクエリを表す Job 抽象基底クラス。

    *output* はエクスポート先のファイル名 (拡張子で形式を決める)。未指定の
    場合はタイムスタンプ付きのファイル名が自動生成される。
    """

    # サブクラスで識別用に上書きする
    kind: str = "base"

    def __init__(self, output: Optional[str] = None):
        self.output = output
        # YAML ファイル単位の output_dir (run_jobs の既定値より優先)
        self.output_dir: Optional[str] = None

    @property
    def name(self) -> str:
        return self.kind

    @abstractmethod
    def run(self, client) -> pd.DataFrame:  # noqa: D401
        """Execute the query against *client* and return its rows."""
