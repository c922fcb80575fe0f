# cardflow: declarative task pipelines for kanban boards
#
# Components:
#   errors.py   - Error taxonomy shared by the compiler and the engine
#   schema.py   - Task language data model, pipeline State, board entities
#   template.py - ~~name~~ placeholder substitution
#   compiler.py - Generic YAML tree -> typed TaskBody
#   context.py  - Compiled task table (board name + name -> Task)
#   engine.py   - Pipeline executor
#   board.py    - Board capability consumed by the engine
#   trello.py   - Trello REST implementation of the board capability
#   config.py   - Application settings
#   runner.py   - key=value arguments, one fresh Executor per trigger
#   bot.py      - Telegram front end
#   cli.py      - Console front end

__version__ = "0.1.0"
