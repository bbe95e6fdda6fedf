from tapsync.cli import main

raise SystemExit(main())
