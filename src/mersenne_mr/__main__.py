from mersenne_mr.cli import main

raise SystemExit(main())
