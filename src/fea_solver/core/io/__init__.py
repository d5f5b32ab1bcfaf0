from .readers import load_mesh, load_task, load_task_xml

__all__ = ["load_mesh", "load_task", "load_task_xml"]
