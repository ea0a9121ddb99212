"""
Telemetry and metrics collection
"""
from typing import Dict, Any, Optional
from dataclasses import dataclass, field
import threading
import time


@dataclass
class Metric:
    """Single metric value"""
    name: str
    value: float
    timestamp: float = field(default_factory=time.time)
    tags: Dict[str, str] = field(default_factory=dict)


@dataclass
class Event:
    """Event record"""
    name: str
    timestamp: float = field(default_factory=time.time)
    metadata: Dict[str, Any] = field(default_factory=dict)


class Telemetry:
    """Telemetry collector"""
    
    def __init__(self):
        self._metrics: list[Metric] = []
        self._events: list[Event] = []
        # Child watcher and master reaper threads record too
        self._lock = threading.Lock()
    
    def record_metric(self, name: str, value: float, tags: Optional[Dict[str, str]] = None) -> None:
        """Record a metric"""
        with self._lock:
            self._metrics.append(Metric(name=name, value=value, tags=tags or {}))
    
    def record_event(self, name: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        """Record an event"""
        with self._lock:
            self._events.append(Event(name=name, metadata=metadata or {}))
    
    def get_metrics(self) -> list[Metric]:
        """Get all recorded metrics"""
        with self._lock:
            return self._metrics.copy()
    
    def get_events(self, name: Optional[str] = None) -> list[Event]:
        """Get recorded events, optionally filtered by name"""
        with self._lock:
            if name is None:
                return self._events.copy()
            return [e for e in self._events if e.name == name]
    
    def clear(self) -> None:
        """Clear all metrics and events"""
        with self._lock:
            self._metrics.clear()
            self._events.clear()


# Global telemetry instance
_telemetry = Telemetry()


def get_telemetry() -> Telemetry:
    """Get global telemetry instance"""
    return _telemetry
