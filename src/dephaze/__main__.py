from dephaze.cli import main

raise SystemExit(main())
