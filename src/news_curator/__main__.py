from news_curator.runner import main

raise SystemExit(main())
