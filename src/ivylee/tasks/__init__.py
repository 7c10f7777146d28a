"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskStatus)
- task_refs.py: ByIndex | ById references and their resolution
- filters.py: "+tag" / "/tag" filter expressions
- tag_styles.py: tag name -> display style registry
- task_store.py: ordered open list + done archive and all operations on them
"""
