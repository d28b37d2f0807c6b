"""Static text blocks used by the prompt workflows.

Blocks are ``str.format`` templates; the placeholders are filled from
:class:`~kbmcp.settings.WorkflowSettings` by :func:`template_context`.
"""

from __future__ import annotations

from textwrap import dedent

from ..settings import WorkflowSettings


def template_context(settings: WorkflowSettings) -> dict[str, str]:
    """Return the placeholder values shared by every template."""
    names = settings.product_names
    return {
        "brand": settings.brand_name,
        "website": settings.website_url.rstrip("/"),
        "author": settings.author_attribution,
        "author_name": settings.author_name,
        "author_first": settings.author_name.split()[0] if settings.author_name else "",
        "author_title": settings.author_title,
        "author_title_lower": settings.author_title.lower(),
        "experience": f"{settings.author_experience_years} years",
        "products": ", ".join(names),
        "products_bold": ", ".join(f"**{name}**" for name in names),
    }


ORIENTATION_INTRO = dedent(
    """
    You have access to the {brand} knowledge base through MCP tools. Below is a map of what's available — the documents, their categories, and when to use them.

    Brand guidelines, writing rules, and approved claims are mandatory constraints — follow them exactly. Clinical documents are reference material — cite accurately, never fabricate. Blog content is for inspiration only — do not copy verbatim.
    """
).strip()

ORIENTATION_ROLES_HEADING = "Every document you load is labelled with the role of its category:"

ORIENTATION_TASK = (
    "Your current task: {task_context}. "
    "Pay special attention to documents relevant to this work."
)

CORRECTIONS_HEADING = dedent(
    """
    ## Known Corrections

    These corrections come from reviewed mistakes. Apply them to everything you produce.
    """
).strip()

ORIENTATION_CLOSING = "Use `read_doc` with a document ID to load specific documents when needed."


MARKETING_PREFACE = dedent(
    """
    ## Marketing Creation Agent

    This agent creates marketing content for {brand}. The essential brand guidelines have been pre-loaded below — follow them in all output.
    """
).strip()

MARKETING_LOADED_HEADING = dedent(
    """
    ## Pre-loaded Brand Guidelines

    The following documents have been loaded automatically. Each is labeled with its role — follow the instruction on each label.
    """
).strip()

MARKETING_MANUAL_LOAD = dedent(
    """
    ## Load Brand Guidelines

    Pre-loading failed. Use `get_kb_map` to see available documents, then load these with `read_doc`:
    """
).strip()

MARKETING_ADDITIONAL_CONTEXT = dedent(
    """
    ## Loading Additional Context

    If your task requires more context, use `get_kb_map` to see what's available, then `read_doc` to load specific documents. Common additions:
    - **Scroll-Stoppers & Messaging Ideas** — for ads, social posts, or email subject lines
    - **Customer Personas** — when targeting a specific audience segment

    Do NOT use web search or external sources — all content comes from the {brand} knowledge base.
    """
).strip()

MARKETING_SCOPE = dedent(
    """
    ## Scope Boundaries

    **Include:** Brand guidelines, writing guidelines, approved marketing claims, customer personas/journeys
    **Exclude:** Clinical white papers, product manuals, finance documents, web searches (unless explicitly requested)
    """
).strip()

MARKETING_PROCESS = dedent(
    """
    ## What This Agent Does

    - Follows brand voice and writing style rules from the pre-loaded guidelines
    - Uses only approved claims from the Quick Claims Reference
    - Matches tone and terminology to {brand} standards
    - Delivers draft content for human review and iteration

    ## Process

    1. Read the pre-loaded guidelines above carefully
    2. Load additional documents if the task requires them
    3. Create the requested content following all brand constraints
    4. Run the compliance check below before delivering
    """
).strip()

MARKETING_CHECKLIST = dedent(
    """
    ## Before Delivering Output

    Review your output against the pre-loaded guidelines and confirm each item:

    1. All product/health claims appear in the Quick Claims Reference
    2. Tone matches Writing Guidelines (no banned words, correct voice)
    3. Product names are exact: {products_bold}
    4. No fabricated clinical claims — every medical statement is from a loaded document
    5. Brand positioning and differentiators are consistent with Brand Positioning doc

    Flag any deviations you cannot resolve. Include this checklist (pass/fail per item) at the end of your response.
    """
).strip()

MARKETING_TASK = "## Current Task\n{task}"

BRAND_REMINDERS = (
    "Use ONLY claims from the Quick Claims Reference — no inventing benefits",
    "Product names exactly: {products}",
    'No superlatives ("best", "revolutionary", "groundbreaking") unless in approved claims',
    "Medical disclaimer required on all health content",
)

GUIDE_REMINDERS = BRAND_REMINDERS + ("Author attribution: {author} on every guide",)


GUIDE_PREFACE = dedent(
    """
    ## {brand} Website Guide Creation Agent

    This agent creates website guides optimized for both Answer Engine Optimization (AEO) and Search Engine Optimization (SEO). All content is designed to perform well in AI-generated answers (ChatGPT, Perplexity, Google AI Overviews) while also ranking in traditional search.
    """
).strip()

GUIDE_LOADED_HEADING = dedent(
    """
    ## Pre-loaded Brand Guidelines

    The following brand documents have been loaded automatically. Follow them as indicated by their role labels.
    """
).strip()

GUIDE_MANUAL_LOAD = dedent(
    """
    ## Load Brand Guidelines

    Pre-loading failed. Use `get_kb_map` to find and load {documents} before starting.
    """
).strip()

GUIDE_ADDITIONAL_CONTEXT = dedent(
    """
    ## Additional Context Loading

    Brand guidelines are pre-loaded above. Before creating the guide, also load topic-specific context using the MCP tools:

    1. **Existing guides for reference** - Use `search_docs` with the topic name to find similar content
    2. **Clinical/medical references** - Use `search_docs` with the condition/topic name to find supporting documentation

    **IMPORTANT:** Use the `search_docs` and `read_doc` tools from this knowledge-base server.
    """
).strip()

GUIDE_REQUIREMENTS = dedent(
    """
    ---

    ## Content Requirements

    ### E-E-A-T Requirements (Critical for Health/YMYL Content)

    **Experience**
    - Include real-world patient scenarios or case examples (anonymized)
    - Reference {author_first}'s {experience} of {author_title_lower} experience
    - Add first-hand observations from clinical practice
    - Include "what I've seen in my practice" insights

    **Expertise**
    - Author attribution: {author} ({author_title})
    - Include author bio with credentials at top or bottom
    - Reference relevant certifications and specializations
    - Link to {author_first}'s about/credentials page

    **Authoritativeness**
    - Cite peer-reviewed sources where applicable (PubMed, medical journals)
    - Reference established medical organizations (NIH, Mayo Clinic, etc.)
    - Include internal links to related {brand} content
    - Date published and last updated clearly displayed

    **Trustworthiness**
    - Include medical disclaimer: "This information is not a substitute for professional medical advice. Consult a healthcare provider for personal guidance."
    - Transparent about product recommendations (disclose {brand} affiliation)
    - Accurate, fact-checked information
    - Clear contact information accessible

    ---

    ### AEO (Answer Engine Optimization) Requirements

    **Direct Answer Format**
    - Lead with a concise, direct answer in the first 1-2 sentences
    - Answer the primary question within the first 50 words
    - Use the "answer-first" structure (conclusion → supporting details)

    **Question-Based Structure**
    - Main H1 should be the primary question or include the question
    - Use H2s formatted as questions users actually ask
    - Include a "Quick Answer" or "Key Takeaway" box at the top

    **LLM-Friendly Formatting**
    - Clear, logical hierarchy (H1 → H2 → H3)
    - Short paragraphs (2-4 sentences max)
    - Bullet points for lists, comparison tables for alternatives
    - Definition boxes for key terms

    **Citation-Ready Content**
    - Each major claim should be extractable as a standalone answer
    - Include specific data points, statistics, and timeframes
    - Make brand mentions natural and contextual ({brand} devices as solutions)

    ---

    ### SEO Requirements

    **Keyword Optimization**
    - Primary keyword in H1 title
    - Primary keyword in first 100 words
    - Secondary/related keywords in H2s
    - Natural keyword density (avoid stuffing)
    - Long-tail question keywords included

    **Meta Elements**
    - Meta title: 50-60 characters, includes primary keyword
    - Meta description: 150-160 characters, includes CTA and keyword
    - URL slug: short, keyword-rich, no stop words

    **Content Depth**
    - Minimum 1,500 words for comprehensive guides
    - Cover topic comprehensively (topical authority)
    - Address related questions and subtopics
    - Include "People Also Ask" questions as H2s

    **Internal/External Linking**
    - 3-5 internal links to related {brand} content
    - 2-3 external links to authoritative sources
    - Anchor text is descriptive (not "click here")
    """
).strip()

GUIDE_SCHEMA = dedent(
    """
    ---

    ### Schema Markup Requirements

    Include these schema types:

    **MedicalWebPage Schema:**
    ```json
    {{
      "@context": "https://schema.org",
      "@type": "MedicalWebPage",
      "name": "[Guide Title]",
      "description": "[Meta description]",
      "url": "[Full URL]",
      "datePublished": "[YYYY-MM-DD]",
      "dateModified": "[YYYY-MM-DD]",
      "author": {{
        "@type": "Person",
        "@id": "{website}/about",
        "name": "{author}",
        "jobTitle": "{author_title}",
        "description": "{author_title} with {experience} of experience, founder of {brand}"
      }},
      "publisher": {{
        "@type": "Organization",
        "name": "{brand}",
        "logo": {{
          "@type": "ImageObject",
          "url": "{website}/logo.png"
        }}
      }}
    }}
    ```

    **FAQPage Schema** for FAQ sections and **HowTo Schema** for instructional content.
    """
).strip()

GUIDE_TEMPLATES: dict[str, str] = {
    "condition": dedent(
        """
        ### Template: Condition Guide

        ```
        # [Condition Name]: The Complete Guide to Understanding and Treating [Condition]

        ## Quick Answer
        [Direct answer: What causes this condition and how to address it - 2-3 sentences max]

        ## What You'll Learn
        - [Key takeaway 1]
        - [Key takeaway 2]
        - [Key takeaway 3]

        ---

        ## What is [Condition]?
        [Definition and overview - 100 words max]

        ## What Causes [Condition]?
        [Explanation with bulleted list of causes]

        ### The Hidden Cause Most People Miss: Muscle Tension
        [Explain the muscle tension connection - this is your differentiator]

        ## Symptoms of [Condition]
        [Bulleted list of common symptoms]

        ## What Most People Try (That Doesn't Work Long-Term)
        [Acknowledge common treatments, explain limitations]

        ## How to Actually Fix [Condition]: The {brand} Method

        ### Step 1: Release the Tight Muscles
        [Instructions, which muscles, how long]

        ### Step 2: Restore Alignment
        [What this means, how to do it]

        ### Step 3: Strengthen and Stabilize
        [Exercises, progression]

        ## How {brand} Tools Can Help
        [Natural product integration - {products} as applicable]

        ## How Long Does Recovery Take?
        [Realistic timeline, what affects it]

        ## When to See a Professional
        [Red flags, when self-treatment isn't enough]

        ## Frequently Asked Questions
        [3-5 FAQs minimum]

        ## Key Takeaways
        [3-5 bullet summary]

        ---

        ## About the Author
        **{author}**
        [Author bio]

        ## Medical Disclaimer
        [Standard disclaimer]

        ## References
        [Citations]

        **Last Updated:** [Date]
        ```
        """
    ).strip(),
    "activity": dedent(
        """
        ### Template: Activity/Lifestyle Guide

        ```
        # [Activity] and [Pain Type]: Why It Happens and How to Prevent It

        ## Quick Answer
        [Direct answer about why this activity causes this issue and what to do - 2-3 sentences]

        ## What You'll Learn
        - Why [activity] causes [problem]
        - Pre-[activity] routine to prevent issues
        - Post-[activity] recovery protocol
        - Long-term solutions

        ---

        ## Why Does [Activity] Cause [Problem]?
        [Explanation of biomechanics, muscle tension development]

        ### The Muscles Most Affected by [Activity]
        [List with brief explanations]

        ## Warning Signs You're Developing a Problem
        [Early symptoms to watch for]

        ## Prevention: Your Pre-[Activity] Routine
        [Step-by-step warm-up/preparation]

        ### 5-Minute Quick Prep
        [Abbreviated version]

        ## Recovery: Your Post-[Activity] Routine
        [Step-by-step recovery protocol]

        ### Using {brand} Tools for Recovery
        [Product integration]

        ## Long-Term Solutions for [Activity] Enthusiasts
        [Ongoing maintenance]

        ## Common Mistakes [Activity Participants] Make
        [What to avoid]

        ## Frequently Asked Questions
        [3-5 FAQs]

        ## Key Takeaways
        [Summary points]

        ---

        ## About the Author
        **{author}**

        **Last Updated:** [Date]
        ```
        """
    ).strip(),
    "product": dedent(
        """
        ### Template: Product Education Guide

        ```
        # How to Use the [Product Name]: Complete Guide for Best Results

        ## Quick Answer
        [What the product does and the key to using it effectively - 2-3 sentences]

        ## What You'll Learn
        - Why the [Product] works
        - Step-by-step usage instructions
        - Pro tips from {experience} of clinical experience
        - Common mistakes to avoid
        - Troubleshooting guide

        ---

        ## Why the [Product] Works
        [Mechanism of action, why prolonged pressure is effective]

        ### The Science Behind Prolonged Pressure
        [Brief explanation with citation]

        ## Before You Start: Setup
        [Preparation, positioning, what you need]

        ## How to Use the [Product]: Step-by-Step

        ### Step 1: [First Step]
        [Detailed instructions]
        **What you should feel:** [Expected sensation]

        ### Step 2: [Second Step]
        [Detailed instructions]
        **What you should feel:** [Expected sensation]

        [Continue as needed]

        ## Pro Tips from {author_first}
        [Clinical insights, advanced techniques]

        ## Common Mistakes to Avoid
        [Bulleted list]

        ## What's Normal vs. What's Not

        ### Normal Sensations
        [List]

        ### Stop If You Experience
        [Red flags]

        ## Progression: Taking It Further
        [How to advance, frequency]

        ## Troubleshooting
        [Common issues and solutions]

        ## Frequently Asked Questions
        [3-5 FAQs]

        ## Key Takeaways
        [Summary]

        ---

        ## About the Author
        **{author}**

        **Last Updated:** [Date]
        ```
        """
    ).strip(),
    "comparison": dedent(
        """
        ### Template: Comparison Guide

        ```
        # [Method/Tool A] vs. [Method/Tool B]: Which Is Better for [Goal]?

        ## Quick Answer
        [Direct comparison verdict - when to use each - 2-3 sentences]

        ## Comparison at a Glance

        | Factor | [Method A] | [Method B] |
        |--------|------------|------------|
        | Best for | [Use case] | [Use case] |
        | Mechanism | [How it works] | [How it works] |
        | Effectiveness | [Assessment] | [Assessment] |
        | Time required | [Duration] | [Duration] |
        | Cost | [Range] | [Range] |
        | Learning curve | [Rating] | [Rating] |
        | Can do at home | [Yes/No] | [Yes/No] |

        ---

        ## What is [Method A]?
        [Brief explanation]

        ### Pros of [Method A]
        [List]

        ### Cons of [Method A]
        [List]

        ## What is [Method B]?
        [Brief explanation]

        ### Pros of [Method B]
        [List]

        ### Cons of [Method B]
        [List]

        ## When to Use [Method A]
        [Specific scenarios]

        ## When to Use [Method B]
        [Specific scenarios]

        ## Can You Use Both Together?
        [Complementary use cases]

        ## What the Research Says
        [Citations and evidence]

        ## The Bottom Line
        [Summary recommendation]

        ## Frequently Asked Questions
        [3-5 FAQs]

        ---

        ## About the Author
        **{author}**

        ## References
        [Citations]

        **Last Updated:** [Date]
        ```
        """
    ).strip(),
    "method": dedent(
        """
        ### Template: Method/Educational Guide

        ```
        # [Foundational Topic]: What It Is, Why It Matters, and How to Address It

        ## Quick Answer
        [Core concept explained simply - 2-3 sentences]

        ## What You'll Learn
        - [Learning objective 1]
        - [Learning objective 2]
        - [Learning objective 3]

        ---

        ## What is [Topic]?
        [Clear definition with analogy if helpful]

        ### [Topic] vs. [Related/Confused Concept]
        [Clarify distinction]

        ## Why Does [Topic] Develop?
        [Causes organized by category]

        ## How [Topic] Affects Your Body
        [Effects organized by body system/area]

        ## The {brand} Approach to [Topic]
        [Your methodology]

        ### Principle 1: [Core Principle]
        [Explanation]

        ### Principle 2: [Core Principle]
        [Explanation]

        ## How to Apply This Knowledge
        [Practical application]

        ## Frequently Asked Questions
        [3-5 FAQs]

        ## Key Takeaways
        [Summary points]

        ## Related Guides
        [Links to related content]

        ---

        ## About the Author
        **{author}**

        ## Medical Disclaimer
        [Standard disclaimer]

        ## References
        [Citations]

        **Last Updated:** [Date]
        ```
        """
    ).strip(),
}

GUIDE_TYPES = tuple(GUIDE_TEMPLATES)
DEFAULT_GUIDE_TYPE = "condition"
FALLBACK_GUIDE_TYPE = "method"

GUIDE_QUALITY = dedent(
    """
    ---

    ## Content Quality Standards

    ### Voice & Tone
    - **Authoritative but accessible**: Expert knowledge in plain language
    - **Empathetic**: Acknowledge pain/frustration readers are experiencing
    - **Solution-oriented**: Focus on actionable relief
    - **Honest**: Acknowledge limitations of self-treatment

    ### Writing Guidelines
    - Use second person ("you") to address reader directly
    - Active voice preferred
    - Reading level: 8th-10th grade
    - Avoid jargon without explanation
    - Include analogies for complex anatomical concepts

    ### Unique Value Requirements
    Each guide must include at least 2 of these elements:
    - Original clinical insight from {author_first}'s experience
    - Unique data or survey findings from {brand} users
    - Custom illustrations or diagrams (note where needed)
    - Video demonstrations (note where needed)
    - Downloadable resources (checklists, guides)

    ---

    ## Pre-Publish Checklist

    **Content Quality**
    - [ ] Direct answer appears in first 50 words
    - [ ] Reading level checked (8th-10th grade)
    - [ ] Unique value element present

    **E-E-A-T**
    - [ ] Author attribution ({author})
    - [ ] Author bio with credentials
    - [ ] Medical disclaimer included

    **AEO Optimization**
    - [ ] Question-based H2s
    - [ ] FAQ section with 3-5 questions
    - [ ] Clear, extractable answers

    **SEO Optimization**
    - [ ] Primary keyword in H1, first 100 words, URL
    - [ ] Meta title 50-60 characters
    - [ ] Meta description 150-160 characters
    - [ ] Internal links (minimum 3)
    - [ ] External authoritative links (minimum 2)

    **Technical**
    - [ ] Schema markup specified
    - [ ] Image alt text noted
    - [ ] Mobile-friendly structure
    """
).strip()

GUIDE_CHECKLIST = dedent(
    """
    ---

    ## Before Delivering Output

    After writing the guide, review it against the pre-loaded brand guidelines and this checklist. Confirm each item passes or flag deviations:

    **Brand Compliance**
    1. All product/health claims appear in the Quick Claims Reference
    2. Tone matches Writing Guidelines (no banned words, correct voice)
    3. Product names are exact: {products_bold}
    4. No fabricated clinical claims — every medical statement is from a loaded document

    **Content Quality**
    5. Direct answer appears in first 50 words
    6. Reading level: 8th-10th grade
    7. Author attribution: {author}
    8. Medical disclaimer included

    **AEO/SEO**
    9. Question-based H2s with FAQ section (3-5 questions)
    10. Meta title (50-60 chars), meta description (150-160 chars), URL slug
    11. Internal links (min 3) and external authoritative links (min 2)

    Include this checklist (pass/fail per item) at the end of your response.
    """
).strip()

GUIDE_TASK = dedent(
    """
    ---

    ## Current Task

    **Topic:** {topic}
    **Guide Type:** {guide_type}

    Create a comprehensive website guide following the format, requirements, and template above. Load any relevant clinical or topic-specific content from the knowledge base first.
    """
).strip()


def guide_template(guide_type: str) -> str:
    """Return the template for ``guide_type``; unknown types get the method template."""
    return GUIDE_TEMPLATES.get(guide_type, GUIDE_TEMPLATES[FALLBACK_GUIDE_TYPE])


__all__ = [
    "BRAND_REMINDERS",
    "CORRECTIONS_HEADING",
    "DEFAULT_GUIDE_TYPE",
    "FALLBACK_GUIDE_TYPE",
    "GUIDE_TEMPLATES",
    "GUIDE_TYPES",
    "GUIDE_REMINDERS",
    "guide_template",
    "template_context",
]
