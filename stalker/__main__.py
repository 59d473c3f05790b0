from stalker.stalker import main

raise SystemExit(main())
