"""Pytest configuration and fixtures for CodeWeaver tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from codeweaver.orchestrator import WeaverOrchestrator
from codeweaver.storage import WeaverStore


@pytest.fixture(autouse=True)
def _isolated_home(monkeypatch, tmp_path):
    """Keep user-level config.toml lookups away from the real home directory."""
    monkeypatch.setattr("codeweaver.config.BASE_DIR", tmp_path / "home")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_project_path() -> Path:
    """Get path to the mixed-language sample project."""
    return Path(__file__).parent / "fixtures" / "sample_project"


@pytest.fixture
def workspace(temp_dir: Path, sample_project_path: Path) -> Path:
    """A writable copy of the sample project."""
    target = temp_dir / "sample"
    shutil.copytree(sample_project_path, target)
    return target


@pytest.fixture
def built_workspace(workspace: Path) -> Path:
    """Sample project copy with index.json and code-maps.json already written."""
    orchestrator = WeaverOrchestrator(WeaverStore(workspace))
    assert orchestrator.index().success
    assert orchestrator.build_maps().success
    return workspace


@pytest.fixture
def sample_ts_code() -> str:
    """TypeScript source exercising most declaration shapes."""
    return '''/** Account helpers. */
import Default, { alpha, beta as gamma } from './lib';
import * as path from 'path';
import './side-effect';

/** Adds two numbers. */
export function add(a: number, b?: number): number {
  return a + (b ?? 0);
}

async function load(id: string) {
  const row = await fetchRow(id);
  return add(row.x, 1);
}

export interface Shape {
  area(): number;
  label?: string;
}

export type Mode = 'light' | 'dark' | 'auto';

export enum Level { Low, High = 'high' }

export class Circle extends Base<number> implements Shape, Printable {
  radius: number;

  area(): number {
    return Math.PI * this.radius ** 2;
  }
}

export const MAX_RADIUS = 100;

export const handler = async (event: Event) => {
  const helper = (x: number) => x * 2;
  return helper(await load(event.id));
};

export { add as plus, load };
export * from './shapes';
'''


@pytest.fixture
def sample_python_code() -> str:
    """Python source for the heuristic extractor."""
    return '''"""Sample module for testing."""

from typing import Dict, List
from .models import Order as OrderModel, Item
import json, os.path as osp

# Tax applied to every order.
TAX_RATE: float = 0.2


def hello(name: str, greeting: str = "Hi") -> str:
    """Say hello."""
    return format_greeting(greeting, name)


def format_greeting(greeting, name):
    return f"{greeting}, {name}!"


# Totals with tax.
async def total(items: List[float], *, rate: float = TAX_RATE) -> float:
    return sum(items) * (1 + rate)


class Calculator(BaseCalc, metaclass=Meta):
    """Simple calculator."""

    precision: int = 2
    history: List[OrderModel]

    def add(self, a: int, b: int) -> int:
        """Add two numbers."""
        return a + b

    def _reset(self):
        """
        Clear the history.
        def not_a_method(self): pass
        """
        self.history = []


class _Private:
    pass
'''


@pytest.fixture
def sample_go_code() -> str:
    """Go source for the heuristic extractor."""
    return '''// Package shapes computes areas.
package shapes

import "math"

import (
	"fmt"
	m "github.com/acme/metrics"
)

// Pi is re-exported for callers.
const Pi = math.Pi

var (
	counter int = 0
	// Verbose toggles logging.
	Verbose bool
)

// Shape is anything with an area.
type Shape interface {
	Area() float64
	Name() string
}

// Circle is a round shape.
type Circle struct {
	Radius float64 `json:"radius"`
}

type Meters float64

// Area returns the circle area.
func (c *Circle) Area() float64 {
	return Pi * c.Radius * c.Radius
}

// Describe prints a shape.
func Describe(s Shape, w, h int) (string, error) {
	m.Count("describe")
	return fmt.Sprintf("%s %d", s.Name(), w*h), nil
}

func helper() { Describe(nil, 1, 2) }
'''
